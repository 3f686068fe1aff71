"""End-to-end edits against real ffmpeg on a generated source clip."""

import shutil

import pytest
import yaml
from moviepy import VideoFileClip

from clipedit.commands import OutputNamer
from clipedit.engine import FFmpegEngine
from clipedit.errors import EngineException
from clipedit.export import ExportPipeline, ExportSettings
from clipedit.probe import DurationProbe
from clipedit.session import EditSession


def _duration(path):
    with VideoFileClip(str(path)) as clip:
        return clip.duration


def _size(path):
    with VideoFileClip(str(path)) as clip:
        return tuple(clip.size)


@pytest.fixture
def session(tmp_path, source_video):
    engine = FFmpegEngine(timeout=120)
    s = EditSession(engine, OutputNamer(tmp_path / "edits", prefix="it"))
    s.load_video(str(source_video))
    return s


class TestRealEngine:
    def test_probe(self, source_video):
        duration = DurationProbe(FFmpegEngine()).probe(str(source_video))
        assert duration == pytest.approx(5.0, abs=0.1)

    def test_load_reads_duration(self, session):
        assert session.timeline.selected.end_time == pytest.approx(5.0, abs=0.1)

    def test_split(self, session):
        part1, part2 = session.split(2.0)
        assert session.state.error is None
        # Stream copy snaps to keyframes, so allow slack.
        assert _duration(part1.locator) == pytest.approx(2.0, abs=1.0)
        assert _duration(part2.locator) == pytest.approx(3.0, abs=1.0)

    def test_speed_halves_duration(self, session):
        clip = session.adjust_speed(2.0)
        assert session.state.error is None
        assert _duration(clip.locator) == pytest.approx(2.5, abs=0.3)

    def test_rotate_swaps_dimensions(self, session):
        clip = session.rotate(90)
        assert session.state.error is None
        assert _size(clip.locator) == (240, 320)

    def test_merge_after_split(self, session):
        session.split(2.0)
        merged = session.merge_clips()
        assert session.state.error is None
        assert len(session.timeline) == 1
        assert _duration(merged.locator) == pytest.approx(5.0, abs=1.0)

    def test_missing_source_reports_failure(self, tmp_path):
        s = EditSession(FFmpegEngine(), OutputNamer(tmp_path / "edits"))
        s.load_video(str(tmp_path / "missing.mp4"))
        assert s.timeline.selected.end_time == 0.0
        assert s.rotate(90) is None
        assert s.state.error == "Failed to rotate video"

    def test_export_scales(self, session, tmp_path):
        pipeline = ExportPipeline(
            session.engine,
            OutputNamer(tmp_path / "renders", prefix="it"),
            ExportSettings(resolution="720p", aspect_ratio="1:1", quality=30),
        )
        out = pipeline.export(session.final_locator())
        assert pipeline.state.error is None
        assert _size(out) == (720, 720)


class TestEditCliEndToEnd:
    def test_manifest_with_export(self, tmp_path, source_video, capsys):
        from clipedit.main import main

        manifest = tmp_path / "edits.yaml"
        manifest.write_text(yaml.dump({
            "source": str(source_video),
            "output_dir": str(tmp_path / "out"),
            "operations": [
                {"op": "split", "at": 2.0},
                {"op": "select", "index": 1},
                {"op": "filter", "name": "black_white"},
                {"op": "merge"},
            ],
            "export": {"resolution": "720p", "quality": 40},
        }, sort_keys=False))
        main(["edit", "--manifest", str(manifest), "--export"])
        out = capsys.readouterr().out
        assert "Merged" in out
        assert "Done:" in out
        exported = list((tmp_path / "out").glob("*_export.mp4"))
        assert len(exported) == 1
        assert _size(exported[0]) == (1280, 720)


def _has_filter(engine, name):
    try:
        result = engine.execute(["-hide_banner", "-filters"])
    except EngineException:
        return False
    return any(line.split()[1:2] == [name] for line in result.log.splitlines())


@pytest.fixture
def drawtext_engine():
    """An ffmpeg with drawtext: the bundled binary, else one on PATH."""
    candidates = [FFmpegEngine(timeout=120)]
    if shutil.which("ffmpeg"):
        candidates.append(FFmpegEngine(shutil.which("ffmpeg"), timeout=120))
    for engine in candidates:
        if _has_filter(engine, "drawtext"):
            return engine
    pytest.skip("no ffmpeg with the drawtext filter available")


class TestTextOverlay:
    @pytest.mark.parametrize("text", ["Hello", "it's 100%: done", "C:\\path"])
    def test_special_characters_render(self, tmp_path, source_video, drawtext_engine, text):
        s = EditSession(drawtext_engine, OutputNamer(tmp_path / "edits", prefix="it"))
        s.load_video(str(source_video))
        clip = s.add_text_overlay(text, font_size=20, color="yellow", x=10, y=10)
        assert s.state.error is None
        assert clip.name == "With Text"
        assert _size(clip.locator) == (320, 240)
