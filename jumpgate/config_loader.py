import getpass
import json
import os
from dataclasses import dataclass, fields

import jsonschema

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class JumpConfig:
    bastion_address: str = None
    bastion_name: str = None
    bastion_user: str = "ec2-user"
    ssh_key_file: str = None
    security_group: str = None
    profile: str = None
    region: str = None
    debug: bool = False
    container_host_user: str = "ec2-user"
    default_executable: str = "sh"
    connect_timeout: int = 10
    read_timeout: int = 30
    ip_discovery_url: str = "https://checkip.amazonaws.com"
    local_user: str = None


class ConfigLoader:
    DEFAULT_PATH = "~/.jumpgate.json"

    ENVIRONMENT = {
        "JUMPGATE_BASTION_ADDRESS": "bastion_address",
        "JUMPGATE_BASTION_NAME": "bastion_name",
        "JUMPGATE_BASTION_USER": "bastion_user",
        "JUMPGATE_SSH_KEY": "ssh_key_file",
        "JUMPGATE_SECURITY_GROUP": "security_group",
        "JUMPGATE_PROFILE": "profile",
        "JUMPGATE_REGION": "region",
        "JUMPGATE_DEBUG": "debug",
    }

    SCHEMA = {
        "type": "object",
        "properties": {
            "bastion_address": {"type": "string", "minLength": 1},
            "bastion_name": {"type": "string", "minLength": 1},
            "bastion_user": {"type": "string", "minLength": 1},
            "ssh_key_file": {"type": "string"},
            "security_group": {"type": "string", "pattern": "^sg-[0-9a-fA-F]+$"},
            "profile": {"type": "string"},
            "region": {"type": "string"},
            "debug": {"type": "boolean"},
            "container_host_user": {"type": "string", "minLength": 1},
            "default_executable": {"type": "string", "minLength": 1},
            "connect_timeout": {"type": "integer", "minimum": 1},
            "read_timeout": {"type": "integer", "minimum": 1},
            "ip_discovery_url": {"type": "string", "pattern": "^https?://"},
            "local_user": {"type": "string", "minLength": 1},
        },
        "additionalProperties": False,
    }

    TRUTHY = ("1", "true", "yes", "on")

    # Same lookup order as getpass.getuser
    IDENTITY_VARIABLES = ("LOGNAME", "USER", "LNAME", "USERNAME")

    def __init__(self, config_path=None, environ=None):
        self.environ = os.environ if environ is None else environ
        self.explicit_path = config_path is not None or "JUMPGATE_CONFIG" in self.environ
        self.config_path = os.path.expanduser(
            config_path or self.environ.get("JUMPGATE_CONFIG") or self.DEFAULT_PATH
        )

    def read_file(self):
        if not os.path.exists(self.config_path):
            if self.explicit_path:
                raise ConfigurationError(
                    f"Configuration file not found: {self.config_path}"
                )
            return {}

        try:
            with open(self.config_path, "r") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Failed to parse JSON config: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read {self.config_path}: {e}")

        if not isinstance(config, dict):
            raise ConfigurationError(
                f"Configuration in {self.config_path} must be a JSON object"
            )
        return config

    def read_environment(self):
        overrides = {}
        for variable, key in self.ENVIRONMENT.items():
            value = self.environ.get(variable)
            if value is None or value == "":
                continue
            if key == "debug":
                overrides[key] = value.strip().lower() in self.TRUTHY
            else:
                overrides[key] = value
        return overrides

    def local_identity(self):
        for variable in self.IDENTITY_VARIABLES:
            if self.environ.get(variable):
                return self.environ[variable]
        try:
            return getpass.getuser()
        except (KeyError, OSError) as e:
            raise ConfigurationError(f"Cannot determine the local user name: {e}")

    def validate_schema(self, config):
        try:
            jsonschema.validate(instance=config, schema=self.SCHEMA)
        except jsonschema.exceptions.ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e.message}")

    def load_config(self, **cli_overrides):
        """Merge file, environment and command line into one JumpConfig."""
        config = self.read_file()
        config.update(self.read_environment())
        config.update({k: v for k, v in cli_overrides.items() if v is not None})

        self.validate_schema(config)

        if not config.get("local_user"):
            config["local_user"] = self.local_identity()

        if config.get("ssh_key_file"):
            config["ssh_key_file"] = os.path.expanduser(config["ssh_key_file"])

        known = {f.name for f in fields(JumpConfig)}
        return JumpConfig(**{k: v for k, v in config.items() if k in known})
