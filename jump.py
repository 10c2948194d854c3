"""jump: reach hosts and ECS containers through the bastion."""

import json
import logging
import shlex
import sys
from typing import Annotated, Optional

import typer

from jumpgate.access_gate import AccessGate
from jumpgate.aws_sessions import AWSSessions
from jumpgate.checker import ConfigChecker
from jumpgate.config_loader import ConfigLoader
from jumpgate.ec2_resolver import EC2Resolver
from jumpgate.ecs_resolver import ECSResolver
from jumpgate.exceptions import JumpGateError
from jumpgate.model import ResolvedEndpoint
from jumpgate.session import SSHSession
from jumpgate.target import Bastion, HostAlias, parse_target

RESOLUTION_FAILURE = 127

logger = logging.getLogger("jumpgate")

app = typer.Typer(
    name="jump",
    help="Open ssh sessions to hosts and ECS containers behind the bastion.",
    add_completion=False,
)


def setup_logging(debug):
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    logging.getLogger("jumpgate").setLevel(logging.DEBUG if debug else logging.INFO)


def list_instances(config, aws):
    for record in EC2Resolver(config, aws.client("ec2")).list_instances():
        typer.echo(json.dumps(record, separators=(",", ":")))
    return 0


def resolve(descriptor, config, aws):
    """Turn a target descriptor into an endpoint plus, for containers, the image tag."""
    ec2 = EC2Resolver(config, aws.client("ec2"))
    bastion_address = ec2.resolve_bastion_address()

    if isinstance(descriptor, Bastion):
        return ResolvedEndpoint(bastion_address=bastion_address), None

    if isinstance(descriptor, HostAlias):
        endpoint = ResolvedEndpoint(
            bastion_address=bastion_address,
            private_address=ec2.resolve_host(descriptor.host),
            remote_user=descriptor.user,
        )
        return endpoint, None

    ecs = ECSResolver(aws.client("ecs"), ec2)
    private_address, image_tag = ecs.resolve(descriptor.service, descriptor.cluster)
    endpoint = ResolvedEndpoint(
        bastion_address=bastion_address,
        private_address=private_address,
        remote_user=config.container_host_user,
    )
    return endpoint, image_tag


def open_session(target, executable, config, aws, force_host=False, dry_run=False):
    descriptor = parse_target(
        target,
        executable,
        default_user=config.local_user,
        default_executable=config.default_executable,
        force_host=force_host,
    )
    endpoint, image_tag = resolve(descriptor, config, aws)

    session = SSHSession(
        logging.getLogger("jumpgate.session"),
        config.bastion_user,
        key_file=config.ssh_key_file,
        connect_timeout=config.connect_timeout,
        label=target,
    )
    command = session.compose(
        endpoint, image_tag, getattr(descriptor, "executable", None)
    )

    if dry_run:
        typer.echo(shlex.join(command))
        return 0

    ConfigChecker().require_all()
    return session.run(endpoint, command)


def dispatch(target, executable, config, aws, host=False, dry_run=False):
    verb = None if host else target
    if verb in ("list",):
        return list_instances(config, aws)
    if verb in ("grant", "unlock"):
        AccessGate(config, aws.client("ec2")).grant()
        return 0
    if verb in ("revoke", "lock"):
        AccessGate(config, aws.client("ec2")).revoke()
        return 0
    return open_session(target, executable, config, aws, host, dry_run)


@app.command()
def main(
    ctx: typer.Context,
    target: Annotated[
        Optional[str],
        typer.Argument(
            help=(
                "list | grant | unlock | revoke | lock | bastion"
                " | <host> | <user>@<host> | <service>#<cluster>"
            ),
        ),
    ] = None,
    executable: Annotated[
        Optional[str],
        typer.Argument(help="Command to exec in the container (service#cluster only)"),
    ] = None,
    config: Annotated[
        Optional[str],
        typer.Option("--config", help="Path to config file"),
    ] = None,
    host: Annotated[
        bool,
        typer.Option("--host", help="Treat TARGET as a host name even if it is a reserved word"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Print the ssh command instead of running it"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Log every lookup to stderr"),
    ] = False,
) -> None:
    """Resolve TARGET behind the bastion and open a session to it."""
    if target is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)

    setup_logging(debug)
    try:
        cfg = ConfigLoader(config).load_config(debug=True if debug else None)
        if cfg.debug:
            setup_logging(True)
        status = dispatch(target, executable, cfg, AWSSessions(cfg), host, dry_run)
    except JumpGateError as e:
        logger.error(str(e))
        raise typer.Exit(RESOLUTION_FAILURE)
    raise typer.Exit(status)


if __name__ == "__main__":
    app()
