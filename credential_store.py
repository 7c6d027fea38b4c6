import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from config import settings
from errors import CredentialWriteFailed

logger = logging.getLogger(__name__)

OWNER_READ_WRITE = 0o600

def _write_private(path: Path, content: str):
    """Write ``content`` to ``path`` so that the file is never readable by others."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, OWNER_READ_WRITE)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        # A pre-existing file keeps its old mode through os.open
        os.chmod(path, OWNER_READ_WRITE)
        handle.write(content)

class CredentialStore:
    def __init__(self, credentials_path: Optional[Path] = None, config_file: Optional[Path] = None,
                 git_host: Optional[str] = None, configure_helper: Optional[bool] = None):
        self.credentials_path = Path(credentials_path) if credentials_path else settings.credentials_path
        self.config_file = Path(config_file) if config_file else settings.config_file
        self.git_host = git_host or settings.GIT_HOST
        self.configure_helper = settings.CONFIGURE_GIT_HELPER if configure_helper is None else configure_helper

    def persist(self, token: str, license_key: str):
        self.persist_token(token)
        self.persist_key(license_key)

    def persist_token(self, token: str):
        """
        Write the access token as a git credential line, then point git at the
        credential store. The file alone is enough for downstream consumers.
        """
        try:
            self.credentials_path.parent.mkdir(parents=True, exist_ok=True)
            _write_private(self.credentials_path, f"https://{token}:x-oauth-basic@{self.git_host}\n")
        except OSError as e:
            raise CredentialWriteFailed(f"Failed to write {self.credentials_path}: {e}") from e

        if self.configure_helper:
            self._configure_git_helper()

    def persist_key(self, license_key: str):
        content = (
            "# NimbusSDK Credentials\n"
            "\n"
            "[nimbus]\n"
            f'api_key = "{license_key}"\n'
        )
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            _write_private(self.config_file, content)
        except OSError as e:
            raise CredentialWriteFailed(f"Failed to write {self.config_file}: {e}") from e

    def read_key(self) -> Optional[str]:
        if not self.config_file.is_file():
            return None
        for line in self.config_file.read_text(encoding="utf-8").splitlines():
            name, sep, value = line.partition("=")
            if sep and name.strip() == "api_key":
                return value.strip().strip('"')
        return None

    def cleanup(self) -> bool:
        """Remove the transport credential file. Failures are logged, never raised."""
        try:
            if self.credentials_path.is_file():
                self.credentials_path.unlink()
                logger.debug("Cleaned up credentials file after failed installation")
                return True
        except OSError as e:
            logger.warning("Failed to clean up credentials at %s: %s", self.credentials_path, e)
        return False

    def _configure_git_helper(self):
        try:
            subprocess.run(
                ["git", "config", "--global", "credential.helper", "store"],
                check=True,
                capture_output=True,
                timeout=settings.API_TIMEOUT
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("Could not configure git credential.helper: %s", e)
