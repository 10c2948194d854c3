import shlex
import subprocess

# ctrl-@ is never typed by accident, so ctrl-p/ctrl-q cannot background the shell.
DETACH_KEYS = "ctrl-@"


class SSHSession:
    """Two-hop interactive ssh session through the bastion."""

    def __init__(
        self,
        logger,
        bastion_user: str,
        key_file: str = None,
        connect_timeout: int = 10,
        label: str = None,
    ):
        self.logger = logger
        self.bastion_user = bastion_user
        self.key_file = key_file
        self.connect_timeout = connect_timeout
        self.label = label

    def _log(self, message):
        prefix = f"[{self.label}] " if self.label else ""
        self.logger.info(f"{prefix}{message}")

    def _hop(self, destination, key_file=None):
        args = ["ssh", "-A", "-t", "-o", f"ConnectTimeout={self.connect_timeout}"]
        if key_file:
            args.extend(["-i", key_file])
        args.append(destination)
        return args

    def bastion_command(self, bastion_address, remote_args=None):
        args = self._hop(f"{self.bastion_user}@{bastion_address}", self.key_file)
        if remote_args:
            # The bastion's shell re-parses everything after the destination.
            args.append(" ".join(shlex.quote(a) for a in remote_args))
        return args

    def host_command(self, endpoint):
        """caller -> bastion -> remote_user@private_address, key carried by the agent."""
        return self.bastion_command(
            endpoint.bastion_address,
            self._hop(f"{endpoint.remote_user}@{endpoint.private_address}"),
        )

    def container_command(self, endpoint, image_tag, executable):
        """caller -> bastion -> host -> docker exec into the first container matching image_tag."""
        # The ECS agent names containers ecs-<family>-<revision>-<container>-<hash>
        name_filter = shlex.quote(f"name=ecs-{image_tag}-")
        container = f"$(docker ps -q --filter {name_filter} | head -n 1)"
        docker_exec = (
            f"docker exec -it --detach-keys={DETACH_KEYS} {container} {executable}"
        )
        return self.bastion_command(
            endpoint.bastion_address,
            self._hop(f"{endpoint.remote_user}@{endpoint.private_address}")
            + [docker_exec],
        )

    def compose(self, endpoint, image_tag=None, executable=None):
        if endpoint.private_address is None:
            return self.bastion_command(endpoint.bastion_address)
        if image_tag is None:
            return self.host_command(endpoint)
        return self.container_command(endpoint, image_tag, executable)

    def run(self, endpoint, command):
        """Hand the terminal to ssh and block until the session ends."""
        destination = endpoint.private_address or "bastion"
        self._log(f"Connecting to {destination} via {endpoint.bastion_address}")
        self.logger.debug(shlex.join(command))
        return subprocess.run(command).returncode
