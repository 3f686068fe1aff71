"""Export pipeline — the terminal render of the final clip.

Progress is reported at fixed milestones (10% before ffmpeg starts, 50%
once it returns, 100% on success) rather than parsed from ffmpeg output.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path

from .catalog import AspectRatio, Resolution
from .commands import OutputNamer, build_export
from .engine import Engine, FFmpegEngine, run_checked
from .errors import EngineException, EngineFailure, NoSourceError, SessionBusyError

logger = logging.getLogger(__name__)

NO_SOURCE_MESSAGE = "No video to export"
EXPORT_FAILED_MESSAGE = "Export failed. Please try again."

PROGRESS_STARTED = 10
PROGRESS_RENDERED = 50
PROGRESS_DONE = 100


@dataclass(frozen=True)
class ExportSettings:
    resolution: str = Resolution.FULL_HD.value
    aspect_ratio: str = AspectRatio.LANDSCAPE.value
    quality: int = 80
    format: str = "mp4"

    def __post_init__(self):
        # Quality is a 0-100 slider value.
        object.__setattr__(self, "quality", max(0, min(100, int(self.quality))))
        fmt = str(self.format or "").strip().lstrip(".")
        if not fmt:
            raise ValueError("Export format must not be empty")
        object.__setattr__(self, "format", fmt)

    @staticmethod
    def from_dict(d: dict | None) -> "ExportSettings":
        """Build settings from a config/manifest mapping; missing keys keep defaults."""
        d = d or {}
        defaults = ExportSettings()
        return ExportSettings(
            resolution=str(d.get("resolution", defaults.resolution)),
            aspect_ratio=str(d.get("aspect_ratio", defaults.aspect_ratio)),
            quality=int(d.get("quality", defaults.quality)),
            format=str(d.get("format", defaults.format)),
        )


@dataclass(frozen=True)
class ExportState:
    settings: ExportSettings = field(default_factory=ExportSettings)
    is_exporting: bool = False
    progress: int = 0
    completed_path: Path | None = None
    error: str | None = None


class ExportPipeline:
    """Renders the final clip with the current export settings.

    Args:
        engine: Object with ``execute(args) -> EngineResult``.
        namer: Output namer (shared with the edit session).
        settings: Initial settings; defaults to ExportSettings().
    """

    def __init__(self, engine: Engine, namer: OutputNamer, settings: ExportSettings | None = None):
        self.engine = engine
        self.namer = namer
        self._state = ExportState(settings=settings or ExportSettings())
        self._listeners = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: dict, engine: Engine | None = None) -> "ExportPipeline":
        if engine is None:
            engine = FFmpegEngine(config.get("ffmpeg"), config.get("engine_timeout"))
        namer = OutputNamer(
            config["output_dir"],
            prefix=config.get("prefix", "clipedit"),
            fmt=config.get("format", "mp4"),
        )
        return cls(engine, namer, ExportSettings.from_dict(config.get("export")))

    @property
    def state(self) -> ExportState:
        return self._state

    @property
    def settings(self) -> ExportSettings:
        return self._state.settings

    def subscribe(self, listener):
        """Register a callable receiving every new ExportState."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _publish(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Export listener raised")

    def clear_error(self) -> None:
        self._publish(error=None)

    # ── Settings ──────────────────────────────────────────────────

    def _update_settings(self, **changes) -> ExportSettings:
        if self._state.is_exporting:
            raise SessionBusyError("Cannot change export settings during an export")
        settings = replace(self._state.settings, **changes)
        self._publish(settings=settings)
        return settings

    def set_resolution(self, resolution: str) -> ExportSettings:
        return self._update_settings(resolution=str(resolution))

    def set_aspect_ratio(self, aspect_ratio: str) -> ExportSettings:
        return self._update_settings(aspect_ratio=str(aspect_ratio))

    def set_quality(self, quality: int) -> ExportSettings:
        return self._update_settings(quality=int(quality))

    def set_format(self, fmt: str) -> ExportSettings:
        return self._update_settings(format=str(fmt))

    # ── Export ────────────────────────────────────────────────────

    def export(self, locator: str | None, settings: ExportSettings | None = None) -> Path | None:
        """Render ``locator`` with the given (or current) settings.

        Returns:
            The output path, or None if the export failed (the reason is
            in ``state.error``).

        Raises:
            SessionBusyError: Another export is already running.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Rejected export: another export is running")
            raise SessionBusyError("An export is already running")
        try:
            if settings is not None:
                self._publish(settings=settings)
            return self._render(locator)
        finally:
            if self._state.is_exporting:
                self._publish(is_exporting=False)
            self._lock.release()

    def _render(self, locator: str | None) -> Path | None:
        error = None
        output = None
        try:
            if not locator:
                raise NoSourceError(NO_SOURCE_MESSAGE)
            settings = self._state.settings
            self._publish(is_exporting=True, progress=0, completed_path=None)
            self._publish(progress=PROGRESS_STARTED)
            command = build_export(str(locator), settings, self.namer)
            try:
                run_checked(self.engine, command.args)
            finally:
                self._publish(progress=PROGRESS_RENDERED)
            output = command.output
        except NoSourceError as e:
            error = str(e)
        except EngineFailure:
            error = EXPORT_FAILED_MESSAGE
        except (EngineException, OSError, ValueError) as e:
            error = f"Export error: {e}"

        if error is not None:
            logger.warning("Export of %s failed: %s", locator, error)
            self._publish(is_exporting=False, error=error)
            return None

        logger.info("Exported %s -> %s", locator, output)
        self._publish(is_exporting=False, progress=PROGRESS_DONE, completed_path=output)
        return output
