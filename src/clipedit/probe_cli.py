"""CLI for duration probing.

Usage:
    clipedit probe source.mp4 [more.mp4 ...]
"""

import argparse
import logging
import sys

from .engine import FFmpegEngine
from .probe import UNKNOWN_DURATION, DurationProbe


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Print the duration of one or more media files.",
    )
    parser.add_argument("sources", nargs="+", help="Media files to probe")
    parser.add_argument(
        "--ffmpeg", default=None,
        help="Path to ffmpeg (default: imageio-ffmpeg's binary)",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log the ffmpeg invocation",
    )
    parsed = parser.parse_args(args)

    logging.basicConfig(level=logging.DEBUG if parsed.verbose else logging.WARNING)

    probe = DurationProbe(FFmpegEngine(parsed.ffmpeg))
    missing = 0
    for src in parsed.sources:
        duration = probe.probe(src)
        if duration == UNKNOWN_DURATION:
            print(f"  ?        {src}")
            missing += 1
        else:
            print(f"  {duration:8.2f}s {src}")

    if missing:
        sys.exit(1)


if __name__ == "__main__":
    main()
