import logging
import os
import subprocess
import sys
from typing import Optional

from errors import InstallationFailed

logger = logging.getLogger(__name__)

class PipPackageManager:
    """Installs distributions by running pip in the current interpreter."""

    def __init__(self, python: Optional[str] = None):
        self.python = python or sys.executable

    def build_command(self, requirement: str, extra_index_url: Optional[str] = None, force: bool = False):
        command = [self.python, "-m", "pip", "install"]
        if force:
            command += ["--upgrade", "--force-reinstall"]
        if extra_index_url:
            command += ["--extra-index-url", extra_index_url]
        command.append(requirement)
        return command

    def install(self, requirement: str, extra_index_url: Optional[str] = None, force: bool = False):
        command = self.build_command(requirement, extra_index_url, force)
        # git must fail instead of prompting when the stored credential is rejected
        env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
        logger.info("Running %s", " ".join(command[1:]))

        try:
            completed = subprocess.run(command, capture_output=True, text=True, env=env)
        except OSError as e:
            raise InstallationFailed(f"Could not run pip: {e}") from e

        if completed.returncode != 0:
            tail = "\n".join((completed.stderr or "").strip().splitlines()[-5:])
            raise InstallationFailed(f"pip exited with status {completed.returncode}: {tail}")
