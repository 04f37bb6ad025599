"""
Apply trigger: restart the host so the udev naming rule is re-evaluated
"""

import logging
import shlex
import subprocess
from typing import Sequence

from .errors import RestartError

logger = logging.getLogger(__name__)

DEFAULT_RESTART_COMMAND: tuple[str, ...] = ("systemctl", "reboot")


class RestartTrigger:
    """
    Issues a full system restart once the artifacts are rewritten.

    There is no confirmation and no delay; the naming rule is only processed
    at boot, so the restart is what applies the migration.
    """

    def __init__(
        self,
        command: Sequence[str] = DEFAULT_RESTART_COMMAND,
        dry_run: bool = False,
        timeout: int = 60,
    ):
        if not command:
            raise ValueError("Restart command must not be empty")
        self.command = list(command)
        self.dry_run = dry_run
        self.timeout = timeout

    def apply_and_restart(self) -> None:
        """
        Run the restart command.

        Raises:
            RestartError: If the command cannot be run or exits non-zero
        """
        printable = " ".join(shlex.quote(part) for part in self.command)

        if self.dry_run:
            logger.info(f"[DRY-RUN] Would restart host: {printable}")
            return

        logger.info(f"[*] Restarting host: {printable}")
        try:
            result = subprocess.run(
                self.command,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise RestartError(f"Restart command failed: {printable}: {e}") from e

        if result.returncode != 0:
            raise RestartError(
                f"Restart command exited {result.returncode}: {printable}\n{result.stderr.strip()}"
            )
