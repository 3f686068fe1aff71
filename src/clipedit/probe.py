"""Duration probing from ffmpeg's log output.

imageio-ffmpeg ships ffmpeg but not ffprobe, so the duration is read from
the 'Duration: HH:MM:SS.cc' header ffmpeg prints while opening an input.
A missing header yields 0.0, which callers treat as "unknown".
"""

import logging
import re

from .commands import build_probe_duration
from .engine import Engine

logger = logging.getLogger(__name__)

DURATION_RE = re.compile(r"Duration: (\d{2}):(\d{2}):(\d{2})\.(\d{2})")

UNKNOWN_DURATION = 0.0


def parse_duration(log: str) -> float:
    """Return the first 'Duration:' value in seconds, or 0.0 if absent."""
    match = DURATION_RE.search(log or "")
    if match is None:
        return UNKNOWN_DURATION
    hours, minutes, seconds, centis = (int(g) for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds + centis / 100.0


class DurationProbe:
    def __init__(self, engine: Engine):
        self.engine = engine

    def probe(self, locator: str) -> float:
        """Run the null-output probe and parse the duration from its log.

        The log is parsed even when ffmpeg reports failure: the header is
        printed before decoding starts. Engine exceptions propagate.
        """
        command = build_probe_duration(locator)
        result = self.engine.execute(list(command.args))
        duration = parse_duration(result.log)
        if duration == UNKNOWN_DURATION:
            logger.warning("No duration found in ffmpeg log for %s", locator)
        else:
            logger.debug("Probed %s: %.2fs", locator, duration)
        return duration
