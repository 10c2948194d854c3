import logging
from unittest.mock import MagicMock, patch

from jumpgate.model import ResolvedEndpoint
from jumpgate.session import SSHSession

BASTION_HOP = [
    "ssh", "-A", "-t", "-o", "ConnectTimeout=10",
    "-i", "/keys/bastion.pem", "ops@bastion.example.com",
]


def make_session(**kwargs):
    return SSHSession(
        logging.getLogger("test"), "ops", key_file="/keys/bastion.pem", **kwargs
    )


class TestSSHSession:
    def test_bastion_only(self):
        endpoint = ResolvedEndpoint(bastion_address="bastion.example.com")
        assert make_session().compose(endpoint) == BASTION_HOP

    def test_without_key_file(self):
        session = SSHSession(logging.getLogger("test"), "ops", connect_timeout=5)
        endpoint = ResolvedEndpoint(bastion_address="bastion.example.com")
        assert session.compose(endpoint) == [
            "ssh", "-A", "-t", "-o", "ConnectTimeout=5", "ops@bastion.example.com",
        ]

    def test_host_hop_uses_agent_not_key(self):
        endpoint = ResolvedEndpoint(
            bastion_address="bastion.example.com",
            private_address="10.0.1.5",
            remote_user="alice",
        )
        command = make_session().compose(endpoint)

        assert command == BASTION_HOP + [
            "ssh -A -t -o ConnectTimeout=10 alice@10.0.1.5"
        ]

    def test_container_hop(self):
        endpoint = ResolvedEndpoint(
            bastion_address="bastion.example.com",
            private_address="10.0.2.9",
            remote_user="ec2-user",
        )
        command = make_session().compose(endpoint, "checkout-7", "sh")

        assert command[: len(BASTION_HOP)] == BASTION_HOP
        assert command[-1] == (
            "ssh -A -t -o ConnectTimeout=10 ec2-user@10.0.2.9 "
            "'docker exec -it --detach-keys=ctrl-@ "
            "$(docker ps -q --filter name=ecs-checkout-7- | head -n 1) sh'"
        )

    @patch("jumpgate.session.subprocess.run")
    def test_run_returns_session_status(self, mock_run):
        mock_run.return_value = MagicMock(returncode=130)
        logger = MagicMock()
        session = SSHSession(logger, "ops", label="web-1")
        endpoint = ResolvedEndpoint(bastion_address="bastion.example.com")

        status = session.run(endpoint, ["ssh", "ops@bastion.example.com"])

        assert status == 130
        mock_run.assert_called_once_with(["ssh", "ops@bastion.example.com"])
        logger.info.assert_called_once_with(
            "[web-1] Connecting to bastion via bastion.example.com"
        )

    def test_container_filter_does_not_match_other_revisions(self):
        endpoint = ResolvedEndpoint(
            bastion_address="bastion.example.com",
            private_address="10.0.2.9",
            remote_user="ec2-user",
        )
        remote = make_session().compose(endpoint, "web-1", "sh")[-1]

        assert "--filter name=ecs-web-1- " in remote
        name_filter = remote.split("--filter name=")[1].split(" ")[0]
        assert name_filter not in "ecs-web-12-app-e2a4f0c1b8d7"
        assert name_filter in "ecs-web-1-app-9c8f7e6d5a4b"
