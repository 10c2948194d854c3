from dataclasses import dataclass


@dataclass(frozen=True)
class ResolvedEndpoint:
    bastion_address: str
    private_address: str = None
    remote_user: str = None


@dataclass(frozen=True)
class ContainerLocator:
    container_instance_id: str
    ec2_instance_id: str
    image_tag: str


@dataclass(frozen=True)
class AccessRule:
    cidr: str
    protocol: str = "tcp"
    port: int = 22

    def as_ip_permission(self, description=None):
        ip_range = {"CidrIp": self.cidr}
        if description:
            ip_range["Description"] = description
        return {
            "IpProtocol": self.protocol,
            "FromPort": self.port,
            "ToPort": self.port,
            "IpRanges": [ip_range],
        }
