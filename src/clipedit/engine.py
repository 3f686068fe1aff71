"""ffmpeg engine adapter — the one request/response primitive the core needs.

The binary is resolved through imageio-ffmpeg unless an explicit path is
configured. Callers only see ``execute(args) -> EngineResult``; tests
substitute any object with the same method.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

import imageio_ffmpeg

from .errors import EngineException, EngineFailure, EngineTimeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineResult:
    success: bool
    log: str = ""


class Engine(Protocol):
    def execute(self, args: list[str]) -> EngineResult: ...


class FFmpegEngine:
    """Runs ffmpeg as a subprocess and returns its exit status and log.

    Args:
        executable: Path to the ffmpeg binary. Defaults to the binary
            bundled with (or located by) imageio-ffmpeg.
        timeout: Seconds to wait before giving up. None waits forever.
    """

    def __init__(self, executable: str | None = None, timeout: float | None = None):
        self._executable = executable
        self.timeout = timeout

    @property
    def executable(self) -> str:
        if self._executable is None:
            self._executable = imageio_ffmpeg.get_ffmpeg_exe()
        return self._executable

    def execute(self, args: list[str]) -> EngineResult:
        logger.debug("ffmpeg %s", " ".join(args))
        try:
            cmd = [self.executable, *args]
            proc = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise EngineTimeout(
                f"ffmpeg did not finish within {self.timeout}s"
            ) from e
        except (OSError, RuntimeError) as e:
            raise EngineException(f"Could not run ffmpeg: {e}") from e

        log = (proc.stderr or "") + (proc.stdout or "")
        if proc.returncode != 0:
            logger.warning("ffmpeg exited with code %d", proc.returncode)
        return EngineResult(success=proc.returncode == 0, log=log)


def run_checked(engine: Engine, args: list[str]) -> EngineResult:
    """Execute and raise EngineFailure on a non-success result."""
    result = engine.execute(list(args))
    if not result.success:
        raise EngineFailure(list(args), result.log)
    return result
