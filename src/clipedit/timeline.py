"""Clip timeline — ordered, selectable sequence of derived clips.

Clips are immutable; every edit creates a new Clip and the timeline swaps
it into a slot. Clip order is playback order and defines concatenation
order for merge/export.
"""

import itertools
import threading
import time
from dataclasses import dataclass, replace

MAIN_CLIP_NAME = "Main Video"

_id_counter = itertools.count(1)
_id_lock = threading.Lock()


def new_clip_id() -> str:
    """Unique id: millisecond timestamp plus a process-wide sequence."""
    with _id_lock:
        seq = next(_id_counter)
    return f"clip_{int(time.time() * 1000)}_{seq}"


@dataclass(frozen=True)
class Clip:
    """Trimmed view of a media file plus display metadata.

    Attributes:
        id: Unique within a timeline.
        locator: Path or URI of the media file backing this clip.
        start_time/end_time: Trim window in seconds. end_time is 0.0 while
            the source duration is still unknown.
        name: Display name ("Part 1", "Speed 2.0x", ...).
        is_selected: Mirrors the timeline's selection.
    """

    id: str
    locator: str
    start_time: float = 0.0
    end_time: float = 0.0
    name: str = ""
    is_selected: bool = False

    def __post_init__(self):
        if self.end_time < self.start_time and self.end_time != 0.0:
            raise ValueError(
                f"Clip end_time ({self.end_time}) must be >= start_time ({self.start_time})"
            )

    @property
    def duration(self) -> float:
        return max(0.0, self.end_time - self.start_time)

    def derive(self, locator: str, name: str, **changes) -> "Clip":
        """Copy with a fresh id, a new backing file and a new display name."""
        return replace(
            self, id=new_clip_id(), locator=str(locator), name=name,
            is_selected=False, **changes,
        )


class ClipTimeline:
    """Ordered clips with at most one selected.

    Unknown ids raise KeyError; inserting an id already present raises
    ValueError.
    """

    def __init__(self):
        self._clips: list[Clip] = []
        self._selected_id: str | None = None

    # ── Queries ────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._clips)

    def __iter__(self):
        return iter(self.clips)

    @property
    def clips(self) -> tuple[Clip, ...]:
        return tuple(self._clips)

    @property
    def selected(self) -> Clip | None:
        if self._selected_id is None:
            return None
        return self._clips[self.index_of(self._selected_id)]

    def index_of(self, clip_id: str) -> int:
        for i, c in enumerate(self._clips):
            if c.id == clip_id:
                return i
        raise KeyError(f"No clip with id '{clip_id}'")

    def get(self, clip_id: str) -> Clip:
        return self._clips[self.index_of(clip_id)]

    def final_locator(self) -> str | None:
        """Locator of the last clip, used as the export source."""
        if not self._clips:
            return None
        return self._clips[-1].locator

    # ── Mutations ──────────────────────────────────────────────────

    def load(self, locator: str, duration: float = 0.0) -> Clip:
        """Reset to a single selected clip spanning the whole source."""
        clip = Clip(
            id=new_clip_id(), locator=str(locator),
            start_time=0.0, end_time=float(duration), name=MAIN_CLIP_NAME,
        )
        return self.reset(clip)

    def reset(self, clip: Clip) -> Clip:
        """Replace the whole timeline with one clip and select it."""
        self._clips = [replace(clip, is_selected=False)]
        return self.select(clip.id)

    def clear(self) -> None:
        self._clips = []
        self._selected_id = None

    def select(self, clip_id: str) -> Clip:
        idx = self.index_of(clip_id)
        self._clips = [
            replace(c, is_selected=(i == idx)) if c.is_selected != (i == idx) else c
            for i, c in enumerate(self._clips)
        ]
        self._selected_id = clip_id
        return self._clips[idx]

    def replace(self, clip_id: str, new_clip: Clip) -> Clip:
        """Swap the clip in place; position and length are unchanged.

        A selected slot stays selected and now points at the new clip.
        """
        idx = self.index_of(clip_id)
        self._check_unique(new_clip, ignore=idx)
        was_selected = self._selected_id == clip_id
        self._clips[idx] = replace(new_clip, is_selected=was_selected)
        if was_selected:
            self._selected_id = new_clip.id
        return self._clips[idx]

    def insert_after(self, clip_id: str, new_clip: Clip) -> Clip:
        """Insert directly after clip_id; every other clip keeps its order."""
        idx = self.index_of(clip_id)
        self._check_unique(new_clip)
        self._clips.insert(idx + 1, replace(new_clip, is_selected=False))
        return self._clips[idx + 1]

    def remove(self, clip_id: str) -> Clip:
        """Remove a clip; a removed selection moves to its neighbour."""
        idx = self.index_of(clip_id)
        removed = self._clips.pop(idx)
        if self._selected_id == clip_id:
            self._selected_id = None
            if self._clips:
                self.select(self._clips[min(idx, len(self._clips) - 1)].id)
        return replace(removed, is_selected=False)

    def set_duration(self, clip_id: str, seconds: float) -> Clip:
        """Fill in end_time once the source duration is known."""
        idx = self.index_of(clip_id)
        clip = self._clips[idx]
        self._clips[idx] = replace(clip, end_time=clip.start_time + float(seconds))
        return self._clips[idx]

    def _check_unique(self, clip: Clip, ignore: int | None = None) -> None:
        for i, c in enumerate(self._clips):
            if i != ignore and c.id == clip.id:
                raise ValueError(f"Duplicate clip id '{clip.id}'")
