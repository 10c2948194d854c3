import logging

from .aws_sessions import describe_call, list_all
from .exceptions import ConfigurationError, ExternalCallError
from .selection import exactly_one

logger = logging.getLogger(__name__)

RUNNING = {"Name": "instance-state-name", "Values": ["running"]}


def instance_tags(instance):
    return {t["Key"]: t["Value"] for t in instance.get("Tags", [])}


def _label(instance):
    name = instance_tags(instance).get("Name", "")
    return f"{instance.get('InstanceId')} ({name})" if name else instance.get("InstanceId")


class EC2Resolver:
    def __init__(self, config, ec2_client):
        self.config = config
        self.ec2 = ec2_client

    def running_instances(self, name=None):
        filters = [RUNNING]
        if name is not None:
            filters.append({"Name": "tag:Name", "Values": [name]})
        reservations = list_all(
            self.ec2, "describe_instances", "Reservations", Filters=filters
        )
        return [i for r in reservations for i in r.get("Instances", [])]

    def resolve_bastion_address(self):
        """
        The bastion's reachable address: the configured one as-is, else the
        public address of the single running instance tagged with bastion_name.
        """
        if self.config.bastion_address:
            logger.debug(f"Using configured bastion address {self.config.bastion_address}")
            return self.config.bastion_address
        if not self.config.bastion_name:
            raise ConfigurationError(
                "No bastion configured: set bastion_address or bastion_name "
                "(JUMPGATE_BASTION_ADDRESS / JUMPGATE_BASTION_NAME)"
            )

        logger.debug(f"Looking up bastion tagged Name={self.config.bastion_name}")
        instance = exactly_one(
            "bastion lookup",
            self.config.bastion_name,
            self.running_instances(self.config.bastion_name),
            describe=_label,
        )
        address = instance.get("PublicDnsName") or instance.get("PublicIpAddress")
        if not address:
            raise ExternalCallError(
                f"Bastion {instance['InstanceId']} has no public address"
            )
        logger.info(f"Bastion is {instance['InstanceId']} at {address}")
        return address

    def resolve_host(self, alias):
        """Private address of the single running instance tagged Name=alias."""
        instance = exactly_one(
            "host lookup", alias, self.running_instances(alias), describe=_label
        )
        return self._private_address(instance)

    def private_address_of(self, instance_id):
        reservations = describe_call(
            self.ec2.describe_instances, InstanceIds=[instance_id]
        ).get("Reservations", [])
        instances = [i for r in reservations for i in r.get("Instances", [])]
        instance = exactly_one("instance lookup", instance_id, instances, describe=_label)
        return self._private_address(instance)

    def _private_address(self, instance):
        address = instance.get("PrivateIpAddress")
        if not address:
            raise ExternalCallError(
                f"Instance {instance['InstanceId']} has no private address"
            )
        logger.info(f"Resolved {_label(instance)} to {address}")
        return address

    def list_instances(self):
        """One {Env, InstanceId, Name} record per running instance, sorted by (Env, Name)."""
        records = []
        for instance in self.running_instances():
            tags = instance_tags(instance)
            records.append(
                {
                    "Env": tags.get("Env", ""),
                    "InstanceId": instance["InstanceId"],
                    "Name": tags.get("Name", ""),
                }
            )
        return sorted(records, key=lambda r: (r["Env"], r["Name"]))
