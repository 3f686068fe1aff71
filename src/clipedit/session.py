"""Edit session — runs one edit at a time against a clip timeline.

Each operation reads the selected clip, builds an ffmpeg command, runs it
through the engine and swaps the resulting clip into the timeline. The
session owns a single-flight lock: a request that arrives while another
is running raises SessionBusyError instead of racing on the same slot.

State changes are published to subscribers as immutable SessionState
snapshots. Engine failures never escape an operation; they become the
session's error message, which stays set until clear_error().
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from .commands import (
    OperationKind,
    OutputNamer,
    build_audio_merge,
    build_concatenate,
    build_crop,
    build_cut,
    build_filter,
    build_rotate,
    build_speed,
    build_text_overlay,
)
from .engine import Engine, FFmpegEngine, run_checked
from .errors import EngineException, EngineFailure, NoSelectionError, SessionBusyError
from .probe import DurationProbe
from .timeline import Clip, ClipTimeline

logger = logging.getLogger(__name__)


class PanelType(Enum):
    FILTERS = "filters"
    AUDIO = "audio"
    TEXT = "text"
    SPEED = "speed"
    CUT = "cut"
    SPLIT = "split"
    CROP = "crop"


@dataclass(frozen=True)
class SessionState:
    clips: tuple[Clip, ...] = ()
    selected: Clip | None = None
    is_processing: bool = False
    progress_text: str = ""
    error: str | None = None
    panel: PanelType | None = None


# kind -> (progress label, failure message, exception message prefix)
MESSAGES = {
    OperationKind.CUT: ("Cutting video...", "Failed to cut video", "Error cutting video"),
    OperationKind.SPLIT: ("Splitting video...", "Failed to split video", "Error splitting video"),
    OperationKind.SPEED: ("Adjusting speed...", "Failed to adjust speed", "Error adjusting speed"),
    OperationKind.ROTATE: ("Rotating video...", "Failed to rotate video", "Error rotating video"),
    OperationKind.FILTER: ("Applying filter...", "Failed to apply filter", "Error applying filter"),
    OperationKind.TEXT: ("Adding text...", "Failed to add text", "Error adding text"),
    OperationKind.AUDIO: ("Adding audio...", "Failed to add audio", "Error adding audio"),
    OperationKind.CROP: ("Cropping video...", "Failed to crop video", "Error cropping video"),
    OperationKind.CONCATENATE: ("Merging clips...", "Failed to merge clips", "Error merging clips"),
}


class EditSession:
    """One editing session over one source video.

    Args:
        engine: Object with ``execute(args) -> EngineResult``.
        namer: Output namer shared with the export pipeline.
        probe: Duration probe; defaults to one backed by ``engine``.
    """

    def __init__(self, engine: Engine, namer: OutputNamer, probe: DurationProbe | None = None):
        self.engine = engine
        self.namer = namer
        self.probe = probe or DurationProbe(engine)
        self.timeline = ClipTimeline()
        self._state = SessionState()
        self._listeners = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: dict, engine: Engine | None = None) -> "EditSession":
        """Build a session from a normalized config dict (see config.py)."""
        if engine is None:
            engine = FFmpegEngine(config.get("ffmpeg"), config.get("engine_timeout"))
        namer = OutputNamer(
            config["output_dir"],
            prefix=config.get("prefix", "clipedit"),
            fmt=config.get("format", "mp4"),
        )
        return cls(engine, namer)

    # ── State publication ─────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._state.is_processing

    def subscribe(self, listener):
        """Register a callable receiving every new SessionState.

        Returns a function that unregisters it.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _publish(self, **changes) -> None:
        self._state = replace(
            self._state,
            clips=self.timeline.clips,
            selected=self.timeline.selected,
            **changes,
        )
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Session listener raised")

    def clear_error(self) -> None:
        self._publish(error=None)

    def show_panel(self, panel: PanelType) -> None:
        self._publish(panel=PanelType(panel))

    def hide_panel(self) -> None:
        self._publish(panel=None)

    def final_locator(self) -> str | None:
        return self.timeline.final_locator()

    # ── Single-flight guard ───────────────────────────────────────

    @contextmanager
    def _single_flight(self, what: str):
        if not self._lock.acquire(blocking=False):
            logger.warning("Rejected %s: another operation is running", what)
            raise SessionBusyError(f"Cannot {what} while another operation is running")
        try:
            yield
        finally:
            # An unexpected exception must not leave the session Processing.
            if self._state.is_processing:
                self._publish(is_processing=False, panel=None)
            self._lock.release()

    def _require_selection(self) -> Clip:
        selected = self.timeline.selected
        if selected is None:
            raise NoSelectionError("No clip is selected")
        return selected

    # ── Timeline management ───────────────────────────────────────

    def load_video(self, locator: str, probe: bool = True) -> Clip:
        """Start over with one clip spanning the whole source.

        The duration is probed when ``probe`` is set; an unreadable
        duration leaves end_time at 0.0.
        """
        with self._single_flight("load a video"):
            duration = 0.0
            error = {}
            if probe:
                self._publish(is_processing=True, progress_text="Reading video...")
                try:
                    duration = self.probe.probe(str(locator))
                except EngineException as e:
                    error["error"] = f"Error reading video duration: {e}"
            clip = self.timeline.load(str(locator), duration)
            logger.info("Loaded %s (%.2fs)", locator, duration)
            self._publish(is_processing=False, panel=None, **error)
            return clip

    def select_clip(self, clip_id: str) -> Clip:
        with self._single_flight("change the selection"):
            clip = self.timeline.select(clip_id)
            self._publish()
            return clip

    def remove_clip(self, clip_id: str) -> Clip:
        with self._single_flight("remove a clip"):
            removed = self.timeline.remove(clip_id)
            self._publish()
            return removed

    # ── Edit operations ───────────────────────────────────────────

    def _transform(self, kind: OperationKind, build, make_clip) -> Clip | None:
        """Run a single-output edit on the selected clip and replace it in place.

        Args:
            kind: Operation kind (selects progress/error messages).
            build: selected Clip -> Command.
            make_clip: (selected Clip, output Path) -> new Clip.

        Returns:
            The new selected clip, or None on failure / no selection.
        """
        progress, failed, errored = MESSAGES[kind]
        with self._single_flight(kind.value):
            try:
                selected = self._require_selection()
            except NoSelectionError:
                logger.info("Ignored %s: no clip selected", kind.value)
                return None

            self._publish(is_processing=True, progress_text=progress)
            error = None
            try:
                command = build(selected)
                run_checked(self.engine, command.args)
            except EngineFailure:
                error = failed
            except (EngineException, OSError, ValueError) as e:
                error = f"{errored}: {e}"
            else:
                self.timeline.replace(selected.id, make_clip(selected, command.output))

            if error is not None:
                logger.warning("%s failed: %s", kind.value, error)
                self._publish(is_processing=False, panel=None, error=error)
                return None
            logger.info("%s -> %s", kind.value, command.output)
            self._publish(is_processing=False, panel=None)
            return self.timeline.selected

    def cut(self, start: float, end: float | None) -> Clip | None:
        """Trim the selected clip to [start, end) and replace it."""
        def build(c):
            if end is None:
                raise ValueError("Cut end time is required")
            return build_cut(c.locator, start, end, self.namer)

        return self._transform(
            OperationKind.CUT,
            build,
            lambda c, out: c.derive(
                out, f"Cut {len(self.timeline)}",
                start_time=float(start), end_time=float(end),
            ),
        )

    def adjust_speed(self, multiplier: float) -> Clip | None:
        return self._transform(
            OperationKind.SPEED,
            lambda c: build_speed(c.locator, multiplier, self.namer),
            lambda c, out: c.derive(out, f"Speed {float(multiplier)}x"),
        )

    def rotate(self, degrees: int = 90) -> Clip | None:
        return self._transform(
            OperationKind.ROTATE,
            lambda c: build_rotate(c.locator, degrees, self.namer),
            lambda c, out: c.derive(out, "Rotated"),
        )

    def apply_filter(self, name: str) -> Clip | None:
        return self._transform(
            OperationKind.FILTER,
            lambda c: build_filter(c.locator, name, self.namer),
            lambda c, out: c.derive(out, "Filtered"),
        )

    def add_text_overlay(
        self,
        text: str,
        font_size: int = 24,
        color: str = "white",
        x: int = 0,
        y: int = 0,
    ) -> Clip | None:
        return self._transform(
            OperationKind.TEXT,
            lambda c: build_text_overlay(c.locator, text, font_size, color, x, y, self.namer),
            lambda c, out: c.derive(out, "With Text"),
        )

    def add_audio(self, audio: str, volume: float = 1.0) -> Clip | None:
        """Mix an extra audio track into the selected clip."""
        return self._transform(
            OperationKind.AUDIO,
            lambda c: build_audio_merge(c.locator, str(audio), volume, self.namer),
            lambda c, out: c.derive(out, "With Audio"),
        )

    def crop(self, width: int, height: int, x: int = 0, y: int = 0) -> Clip | None:
        return self._transform(
            OperationKind.CROP,
            lambda c: build_crop(c.locator, width, height, x, y, self.namer),
            lambda c, out: c.derive(out, "Cropped"),
        )

    def split(self, split_time: float) -> tuple[Clip, Clip] | None:
        """Split the selected clip into Part 1 [0, t) and Part 2 [t, end).

        Times are relative to the selected clip's own media. Both cuts must
        succeed; if the second fails the first output is deleted and the
        timeline is left as it was. Part 1 keeps the selection.
        """
        progress, failed, errored = MESSAGES[OperationKind.SPLIT]
        with self._single_flight(OperationKind.SPLIT.value):
            try:
                selected = self._require_selection()
            except NoSelectionError:
                logger.info("Ignored split: no clip selected")
                return None

            self._publish(is_processing=True, progress_text=progress)
            split_time = float(split_time)
            first = None
            error = None
            try:
                end = selected.duration
                if end <= 0:
                    end = self.probe.probe(selected.locator)
                if split_time <= 0:
                    raise ValueError(f"Split time must be > 0, got {split_time}")
                if end > 0 and split_time >= end:
                    raise ValueError(
                        f"Split time ({split_time}) must be before the clip end ({end})"
                    )
                first = build_cut(selected.locator, 0.0, split_time, self.namer)
                run_checked(self.engine, first.args)
                second = build_cut(selected.locator, split_time, end or None, self.namer)
                run_checked(self.engine, second.args)
            except EngineFailure:
                error = failed
            except (EngineException, OSError, ValueError) as e:
                error = f"{errored}: {e}"

            if error is not None:
                if first is not None:
                    _discard(first.output)
                logger.warning("split failed: %s", error)
                self._publish(is_processing=False, panel=None, error=error)
                return None

            part1 = selected.derive(first.output, "Part 1", start_time=0.0, end_time=split_time)
            part2 = selected.derive(second.output, "Part 2", start_time=split_time, end_time=end)
            self.timeline.replace(selected.id, part1)
            self.timeline.insert_after(part1.id, part2)
            self.timeline.select(part1.id)
            logger.info("split at %.3fs -> %s, %s", split_time, first.output, second.output)
            self._publish(is_processing=False, panel=None)
            return self.timeline.get(part1.id), self.timeline.get(part2.id)

    def merge_clips(self) -> Clip | None:
        """Concatenate every clip in timeline order into one 'Merged' clip."""
        progress, failed, errored = MESSAGES[OperationKind.CONCATENATE]
        with self._single_flight("merge clips"):
            clips = self.timeline.clips
            if not clips:
                logger.info("Ignored merge: timeline is empty")
                return None

            self._publish(is_processing=True, progress_text=progress)
            error = None
            try:
                command = build_concatenate([c.locator for c in clips], self.namer)
                run_checked(self.engine, command.args)
            except EngineFailure:
                error = failed
            except (EngineException, OSError, ValueError) as e:
                error = f"{errored}: {e}"

            if error is not None:
                logger.warning("merge failed: %s", error)
                self._publish(is_processing=False, panel=None, error=error)
                return None

            total = sum(c.duration for c in clips)
            merged = clips[0].derive(command.output, "Merged", start_time=0.0, end_time=total)
            self.timeline.reset(merged)
            logger.info("merged %d clips -> %s", len(clips), command.output)
            self._publish(is_processing=False, panel=None)
            return self.timeline.selected


def _discard(path: Path | None) -> None:
    """Delete an orphaned intermediate output."""
    if path is None:
        return
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove orphaned output %s: %s", path, e)
