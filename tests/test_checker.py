import subprocess
from unittest.mock import patch

import pytest

from jumpgate.checker import ConfigChecker
from jumpgate.exceptions import MissingDependencyError


class TestConfigChecker:
    @patch("jumpgate.checker.subprocess.run")
    def test_ssh_present(self, mock_run):
        assert ConfigChecker.check_ssh_client() is True
        assert mock_run.call_args.args[0] == ["ssh", "-V"]

    @patch("jumpgate.checker.subprocess.run", side_effect=FileNotFoundError())
    def test_ssh_missing(self, mock_run):
        assert ConfigChecker().validate_all() == {"ssh_client": False}
        with pytest.raises(MissingDependencyError, match="ssh_client"):
            ConfigChecker().require_all()

    @patch(
        "jumpgate.checker.subprocess.run",
        side_effect=subprocess.CalledProcessError(255, ["ssh", "-V"]),
    )
    def test_ssh_broken(self, mock_run):
        assert ConfigChecker.check_ssh_client() is False
