"""Deployment service control."""

import subprocess
import typing as t

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from ..errors import ServiceControlFailed
from ..util.logging import get_logger

logger = get_logger(__name__)

# The service control manager answers 1061 while a stop or start is pending.
SERVICE_BUSY_EXIT_CODE = 1061


def _service_busy(error: BaseException) -> bool:
    return (
        isinstance(error, ServiceControlFailed)
        and error.context.get("exit_code") == SERVICE_BUSY_EXIT_CODE
    )


class ServiceController:
    """Stops the deployment service before package work.

    Restarting is left to the build pipeline.
    """

    def __init__(
        self,
        name: str,
        stop_command: t.Sequence[str] = ("sc.exe", "stop", "{name}"),
        tolerated_exit_codes: t.Iterable[int] = (0,),
    ) -> None:
        self.name = name
        self.stop_command = list(stop_command)
        self.tolerated_exit_codes = set(tolerated_exit_codes)

    def build_command(self) -> t.List[str]:
        return [part.format(name=self.name) for part in self.stop_command]

    @retry(
        retry=retry_if_exception(_service_busy),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    def stop(self) -> None:
        cmd = self.build_command()
        logger.info(f"Stopping service {self.name}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            raise ServiceControlFailed(
                f"Could not run stop command: {e}",
                operation="stop service",
                context={"service": self.name},
            ) from e

        if result.returncode not in self.tolerated_exit_codes:
            raise ServiceControlFailed(
                f"Stop command exited with {result.returncode}: {result.stderr.strip() or result.stdout.strip()}",
                operation="stop service",
                context={"service": self.name, "exit_code": result.returncode},
            )

        logger.debug(f"Service {self.name} stopped (exit code {result.returncode})")
