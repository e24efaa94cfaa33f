"""Tests for layered YAML settings."""

from pathlib import Path

import pytest

from mindweaver.config import load_settings


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    return path


@pytest.fixture(autouse=True)
def no_env_config(monkeypatch):
    monkeypatch.delenv('MINDWEAVER_CONFIG', raising=False)


class TestLoadSettings:
    """Tests for defaults, layering and tolerance of bad files."""

    def test_defaults_without_files(self, tmp_path):
        settings = load_settings(project_root=tmp_path)
        assert settings.layout.charge_strength == -400
        assert settings.viewport.width == 800
        assert settings.data_path is None
        assert settings.sources == []

    def test_later_files_override_earlier(self, tmp_path):
        write(tmp_path / 'config' / 'mindweaver_defaults.yaml',
              "default_topic: vitamins\nlayout:\n  ring_step: 100\n  max_iterations: 50\n")
        write(tmp_path / '.mindweaver.yaml', "layout:\n  ring_step: 120\n")
        settings = load_settings(project_root=tmp_path)
        assert settings.layout.ring_step == 120
        assert settings.layout.max_iterations == 50
        assert settings.default_topic == "vitamins"
        assert len(settings.sources) == 2

    def test_data_path_relative_to_file(self, tmp_path):
        write(tmp_path / 'config' / 'mindweaver_defaults.yaml', "data_path: ../data/topics.json\n")
        settings = load_settings(project_root=tmp_path)
        assert settings.data_path.resolve() == (tmp_path / 'data' / 'topics.json').resolve()

    def test_explicit_config_wins(self, tmp_path):
        write(tmp_path / '.mindweaver.yaml', "viewport:\n  width: 1024\n")
        explicit = write(tmp_path / 'custom.yaml', "viewport:\n  width: 1280\n  scale_extent: [0.5, 2]\n")
        settings = load_settings(project_root=tmp_path, config_path=explicit)
        assert settings.viewport.width == 1280
        assert settings.viewport.scale_extent == (0.5, 2)

    def test_env_config(self, tmp_path, monkeypatch):
        path = write(tmp_path / 'env.yaml', "log_level: debug\n")
        monkeypatch.setenv('MINDWEAVER_CONFIG', str(path))
        assert load_settings(project_root=tmp_path).log_level == 'DEBUG'

    def test_invalid_yaml_skipped(self, tmp_path, caplog):
        write(tmp_path / '.mindweaver.yaml', "layout: [unclosed\n")
        settings = load_settings(project_root=tmp_path)
        assert settings.sources == []
        assert any('Failed to load' in r.message for r in caplog.records)

    def test_unknown_keys_warned(self, tmp_path, caplog):
        write(tmp_path / '.mindweaver.yaml', "layout:\n  warp_drive: 9\n")
        settings = load_settings(project_root=tmp_path)
        assert not hasattr(settings.layout, 'warp_drive')
        assert any('warp_drive' in r.message for r in caplog.records)

    def test_topic_labels(self, tmp_path):
        write(tmp_path / '.mindweaver.yaml', "topic_labels:\n  vitamins: Vitamins\n")
        assert load_settings(project_root=tmp_path).topic_labels == {"vitamins": "Vitamins"}
