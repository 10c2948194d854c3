import logging

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import ConfigurationError, ExternalCallError
from .ip_discovery import discover_public_ipv4
from .model import AccessRule

logger = logging.getLogger(__name__)


class AccessGate:
    """Opens and closes tcp/22 on the bastion security group for the caller's IP."""

    RULE_DESCRIPTION = "jumpgate"

    def __init__(self, config, ec2_client, discover=None):
        self.config = config
        self.ec2 = ec2_client
        self.discover = discover or discover_public_ipv4

    def _rule(self):
        if not self.config.security_group:
            raise ConfigurationError(
                "No bastion security group configured (security_group / JUMPGATE_SECURITY_GROUP)"
            )
        ip = self.discover(
            self.config.ip_discovery_url, timeout=self.config.connect_timeout
        )
        return AccessRule(cidr=f"{ip}/32")

    def grant(self):
        rule = self._rule()
        logger.info(
            f"Granting {rule.protocol}/{rule.port} from {rule.cidr} on {self.config.security_group}"
        )
        try:
            self.ec2.authorize_security_group_ingress(
                GroupId=self.config.security_group,
                IpPermissions=[rule.as_ip_permission(self.RULE_DESCRIPTION)],
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "InvalidPermission.Duplicate":
                logger.info(f"{rule.cidr} already has access")
                return rule
            raise ExternalCallError(f"authorize_security_group_ingress failed: {e}")
        except BotoCoreError as e:
            raise ExternalCallError(f"authorize_security_group_ingress failed: {e}")
        return rule

    def revoke(self):
        rule = self._rule()
        logger.info(
            f"Revoking {rule.protocol}/{rule.port} from {rule.cidr} on {self.config.security_group}"
        )
        try:
            response = self.ec2.revoke_security_group_ingress(
                GroupId=self.config.security_group,
                IpPermissions=[rule.as_ip_permission()],
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "InvalidPermission.NotFound":
                logger.info(f"{rule.cidr} had no access")
                return rule
            raise ExternalCallError(f"revoke_security_group_ingress failed: {e}")
        except BotoCoreError as e:
            raise ExternalCallError(f"revoke_security_group_ingress failed: {e}")

        if response and response.get("UnknownIpPermissions"):
            logger.info(f"{rule.cidr} had no access")
        return rule

    unlock = grant
    lock = revoke
