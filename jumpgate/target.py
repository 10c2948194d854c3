from dataclasses import dataclass

from .exceptions import InvalidTargetError


@dataclass(frozen=True)
class Bastion:
    pass


@dataclass(frozen=True)
class HostAlias:
    host: str
    user: str = None


@dataclass(frozen=True)
class ServiceOnCluster:
    service: str
    cluster: str
    executable: str = None


def _local_user(raw, default_user):
    if not default_user:
        raise InvalidTargetError(
            f"No local user name to log in as for '{raw}'; use <user>@<host>"
        )
    return default_user


def parse_target(
    raw, executable=None, default_user=None, default_executable=None, force_host=False
):
    """
    Classify a typed identifier:

        service#cluster  -> ServiceOnCluster
        user@host        -> HostAlias with that user
        bastion          -> Bastion
        host             -> HostAlias as the local user

    force_host reads a reserved word such as "bastion" as a host alias.
    """
    if not raw:
        return Bastion()

    if "#" in raw:
        service, _, cluster = raw.partition("#")
        if not service or not cluster or "#" in cluster:
            raise InvalidTargetError(f"Expected <service>#<cluster>, got '{raw}'")
        return ServiceOnCluster(
            service=service,
            cluster=cluster,
            executable=executable or default_executable or "sh",
        )

    if executable is not None:
        raise InvalidTargetError(
            f"An executable is only accepted for <service>#<cluster> targets, not '{raw}'"
        )

    if "@" in raw:
        user, _, host = raw.rpartition("@")
        if not host:
            raise InvalidTargetError(f"Expected <user>@<host>, got '{raw}'")
        return HostAlias(host=host, user=user or _local_user(raw, default_user))

    if raw == "bastion" and not force_host:
        return Bastion()

    return HostAlias(host=raw, user=_local_user(raw, default_user))
