"""Tests for the YAML session config loader."""

import pytest
import yaml

from clipedit.config import DEFAULT_ENGINE_TIMEOUT, load_config, normalize_config


def _write_config(tmp_path, data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data))
    return path


class TestLoadConfig:
    def test_minimal_gets_defaults(self, tmp_path):
        config = load_config(_write_config(tmp_path, {"output_dir": "/data/out"}))
        assert config == {
            "output_dir": "/data/out",
            "prefix": "clipedit",
            "format": "mp4",
            "engine_timeout": DEFAULT_ENGINE_TIMEOUT,
            "ffmpeg": None,
            "export": {},
        }

    def test_path_vars(self, tmp_path):
        config = load_config(_write_config(tmp_path, {
            "paths": {"work": "/data/edits", "bin": "/opt/ff"},
            "output_dir": "${work}/renders",
            "ffmpeg": "${bin}/ffmpeg",
        }))
        assert config["output_dir"] == "/data/edits/renders"
        assert config["ffmpeg"] == "/opt/ff/ffmpeg"

    def test_full(self, tmp_path):
        config = load_config(_write_config(tmp_path, {
            "output_dir": "/out",
            "prefix": "demo",
            "format": ".mov",
            "engine_timeout": 120,
            "export": {"resolution": "4k", "quality": 90},
        }))
        assert config["prefix"] == "demo"
        assert config["format"] == "mov"
        assert config["engine_timeout"] == 120.0
        assert config["export"] == {"resolution": "4k", "quality": 90}

    def test_null_timeout(self, tmp_path):
        config = load_config(_write_config(tmp_path, {"output_dir": "/out", "engine_timeout": None}))
        assert config["engine_timeout"] is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="output_dir"):
            load_config(path)


class TestValidation:
    def test_not_a_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            normalize_config(["output_dir"])

    def test_missing_output_dir(self):
        with pytest.raises(ValueError, match="output_dir"):
            normalize_config({"prefix": "x"})

    def test_unknown_path_var(self):
        with pytest.raises(ValueError, match="Unknown path variable"):
            normalize_config({"output_dir": "${nope}/out"})

    def test_prefix_with_separator(self):
        with pytest.raises(ValueError, match="prefix"):
            normalize_config({"output_dir": "/out", "prefix": "a/b"})

    def test_empty_format(self):
        with pytest.raises(ValueError, match="format"):
            normalize_config({"output_dir": "/out", "format": ""})

    @pytest.mark.parametrize("timeout", [0, -3])
    def test_non_positive_timeout(self, timeout):
        with pytest.raises(ValueError, match="engine_timeout"):
            normalize_config({"output_dir": "/out", "engine_timeout": timeout})

    def test_export_not_mapping(self):
        with pytest.raises(ValueError, match="export"):
            normalize_config({"output_dir": "/out", "export": "1080p"})
