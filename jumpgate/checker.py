import subprocess

from .exceptions import MissingDependencyError


class ConfigChecker:
    @staticmethod
    def check_ssh_client():
        """Check if the OpenSSH client is installed and accessible."""
        try:
            subprocess.run(
                ["ssh", "-V"],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
            )
            return True
        except (subprocess.CalledProcessError, FileNotFoundError):
            return False

    def validate_all(self):
        """Perform all preflight checks."""
        results = {
            "ssh_client": self.check_ssh_client(),
        }
        return results

    def require_all(self):
        missing = [name for name, ok in self.validate_all().items() if not ok]
        if missing:
            raise MissingDependencyError(
                f"Required tools not available: {', '.join(missing)}. "
                "Install the OpenSSH client."
            )
