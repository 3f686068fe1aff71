"""Tests for Clip and ClipTimeline."""

import pytest

from clipedit.timeline import Clip, ClipTimeline, MAIN_CLIP_NAME, new_clip_id


def _clip(name, start=0.0, end=10.0):
    return Clip(id=new_clip_id(), locator=f"{name}.mp4", start_time=start, end_time=end, name=name)


def _timeline(*names):
    tl = ClipTimeline()
    tl.load("main.mp4", 10.0)
    first = tl.clips[0]
    tl.replace(first.id, _clip(names[0]))
    prev = tl.clips[0]
    for name in names[1:]:
        prev = tl.insert_after(prev.id, _clip(name))
    return tl


def _names(tl):
    return [c.name for c in tl.clips]


class TestClip:
    def test_duration(self):
        assert _clip("a", 2.0, 7.5).duration == pytest.approx(5.5)

    def test_unknown_end_has_zero_duration(self):
        assert Clip(id="x", locator="a.mp4", start_time=4.0, end_time=0.0).duration == 0.0

    def test_inverted_window_rejected(self):
        with pytest.raises(ValueError):
            Clip(id="x", locator="a.mp4", start_time=5.0, end_time=2.0)

    def test_derive_gets_fresh_id(self):
        c = _clip("a")
        d = c.derive("b.mp4", "Rotated")
        assert d.id != c.id
        assert d.locator == "b.mp4"
        assert d.name == "Rotated"
        assert (d.start_time, d.end_time) == (c.start_time, c.end_time)

    def test_ids_unique(self):
        ids = {new_clip_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestLoad:
    def test_single_selected_clip(self):
        tl = ClipTimeline()
        clip = tl.load("talk.mp4")
        assert len(tl) == 1
        assert clip.name == MAIN_CLIP_NAME
        assert clip.start_time == 0.0
        assert clip.end_time == 0.0
        assert clip.is_selected
        assert tl.selected == clip

    def test_reload_resets(self):
        tl = _timeline("a", "b", "c")
        tl.load("other.mp4", 3.0)
        assert len(tl) == 1
        assert tl.final_locator() == "other.mp4"

    def test_set_duration(self):
        tl = ClipTimeline()
        clip = tl.load("talk.mp4")
        updated = tl.set_duration(clip.id, 12.5)
        assert updated.end_time == 12.5
        assert tl.selected.end_time == 12.5


class TestSelection:
    def test_exactly_one_selected(self):
        tl = _timeline("a", "b", "c")
        b = tl.clips[1]
        tl.select(b.id)
        assert [c.is_selected for c in tl.clips] == [False, True, False]
        assert tl.selected.id == b.id

    def test_unknown_id(self):
        tl = _timeline("a")
        with pytest.raises(KeyError):
            tl.select("nope")


class TestReplace:
    def test_keeps_position_and_length(self):
        tl = _timeline("a", "b", "c")
        b = tl.clips[1]
        tl.replace(b.id, _clip("B"))
        assert _names(tl) == ["a", "B", "c"]
        assert len(tl) == 3

    def test_selection_follows_slot(self):
        tl = _timeline("a", "b")
        b = tl.clips[1]
        tl.select(b.id)
        new = _clip("B")
        tl.replace(b.id, new)
        assert tl.selected.id == new.id
        assert tl.clips[1].is_selected

    def test_duplicate_id_rejected(self):
        tl = _timeline("a", "b")
        a, b = tl.clips
        with pytest.raises(ValueError, match="Duplicate"):
            tl.replace(a.id, Clip(id=b.id, locator="x.mp4"))


class TestInsertAfter:
    def test_grows_by_one_preserving_order(self):
        tl = _timeline("a", "b", "c")
        a = tl.clips[0]
        tl.insert_after(a.id, _clip("a2"))
        assert _names(tl) == ["a", "a2", "b", "c"]

    def test_after_last(self):
        tl = _timeline("a", "b")
        tl.insert_after(tl.clips[-1].id, _clip("z"))
        assert _names(tl) == ["a", "b", "z"]
        assert tl.final_locator() == "z.mp4"

    def test_inserted_clip_not_selected(self):
        tl = _timeline("a")
        inserted = tl.insert_after(tl.clips[0].id, _clip("b"))
        assert not inserted.is_selected
        assert sum(c.is_selected for c in tl.clips) == 1


class TestRemove:
    def test_selection_moves_to_neighbour(self):
        tl = _timeline("a", "b", "c")
        b = tl.clips[1]
        tl.select(b.id)
        tl.remove(b.id)
        assert _names(tl) == ["a", "c"]
        assert tl.selected.name == "c"

    def test_removing_last_selected_moves_back(self):
        tl = _timeline("a", "b")
        b = tl.clips[1]
        tl.select(b.id)
        tl.remove(b.id)
        assert tl.selected.name == "a"

    def test_remove_only_clip(self):
        tl = ClipTimeline()
        clip = tl.load("a.mp4")
        tl.remove(clip.id)
        assert len(tl) == 0
        assert tl.selected is None
        assert tl.final_locator() is None


class TestFinalLocator:
    def test_empty(self):
        assert ClipTimeline().final_locator() is None

    def test_clear(self):
        tl = _timeline("a", "b")
        tl.clear()
        assert tl.final_locator() is None
        assert tl.selected is None
