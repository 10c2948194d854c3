import logging

from .aws_sessions import describe_call, list_all, list_call
from .exceptions import AmbiguousMatchError, ExternalCallError
from .model import ContainerLocator
from .selection import resource_name, select_one

logger = logging.getLogger(__name__)


def derive_image_tag(task_definition_arn):
    """
    arn:aws:ecs:...:task-definition/family:7 -> family-7, the fragment the ECS
    agent embeds in the names of the containers it starts.
    """
    return task_definition_arn.split("/")[-1].replace(":", "-")


class ECSResolver:
    def __init__(self, ecs_client, ec2_resolver):
        self.ecs = ecs_client
        self.ec2_resolver = ec2_resolver

    def find_cluster(self, cluster):
        clusters = list_all(self.ecs, "list_clusters", "clusterArns")
        cluster_arn = select_one("cluster", cluster, clusters)
        logger.debug(f"Cluster '{cluster}' is {cluster_arn}")
        return cluster_arn

    def find_service(self, cluster_arn, service):
        services = list_all(self.ecs, "list_services", "serviceArns", cluster=cluster_arn)
        service_arn = select_one("service", service, services)
        logger.debug(f"Service '{service}' is {service_arn}")
        return service_arn

    def first_task(self, cluster_arn, service_arn):
        # A scaled service runs several tasks; any one of them will do.
        task_arns = list_call(
            self.ecs.list_tasks,
            cluster=cluster_arn,
            serviceName=resource_name(service_arn),
            desiredStatus="RUNNING",
        ).get("taskArns", [])
        if not task_arns:
            raise AmbiguousMatchError("task", resource_name(service_arn), [])
        logger.debug(f"Using task {task_arns[0]} of {len(task_arns)}")
        return task_arns[0]

    def locate_container(self, cluster_arn, task_arn):
        tasks = describe_call(
            self.ecs.describe_tasks, cluster=cluster_arn, tasks=[task_arn]
        ).get("tasks", [])
        if not tasks:
            raise ExternalCallError(f"describe_tasks returned nothing for {task_arn}")
        task = tasks[0]

        container_instance_arn = task.get("containerInstanceArn")
        if not container_instance_arn:
            raise ExternalCallError(
                f"Task {resource_name(task_arn)} is not placed on a container "
                f"instance (Fargate tasks have no host to reach)"
            )

        container_instances = describe_call(
            self.ecs.describe_container_instances,
            cluster=cluster_arn,
            containerInstances=[container_instance_arn],
        ).get("containerInstances", [])
        if not container_instances or not container_instances[0].get("ec2InstanceId"):
            raise ExternalCallError(
                f"describe_container_instances returned no EC2 instance for {container_instance_arn}"
            )

        return ContainerLocator(
            container_instance_id=container_instance_arn,
            ec2_instance_id=container_instances[0]["ec2InstanceId"],
            image_tag=derive_image_tag(task["taskDefinitionArn"]),
        )

    def resolve(self, service, cluster):
        """
        Walk cluster -> service -> task -> container instance -> EC2 instance.

        Returns (private_address, image_tag).
        """
        logger.info(f"Resolving service '{service}' on cluster '{cluster}'")
        cluster_arn = self.find_cluster(cluster)
        service_arn = self.find_service(cluster_arn, service)
        task_arn = self.first_task(cluster_arn, service_arn)
        locator = self.locate_container(cluster_arn, task_arn)
        logger.debug(
            f"Task {resource_name(task_arn)} runs on {locator.ec2_instance_id} as {locator.image_tag}"
        )
        private_address = self.ec2_resolver.private_address_of(locator.ec2_instance_id)
        return private_address, locator.image_tag
