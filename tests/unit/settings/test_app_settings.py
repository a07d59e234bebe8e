import pytest

from src.imagehost.config import AppSettings, load_config


@pytest.mark.unit
def test_environment_overrides_defaults(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("IMAGEHOST_CLEANUP_INTERVAL_MS", "1500")
    monkeypatch.setenv("IMAGEHOST_GUEST_OPEN_WINDOW_SECONDS", "120")
    monkeypatch.setenv("IMAGEHOST_MEDIA_ROOT", str(tmp_path / "media"))

    settings = AppSettings()

    assert settings.cleanup_interval_ms == 1500
    assert settings.guest_open_window_seconds == 120
    assert settings.album_open_window_seconds == 60


@pytest.mark.unit
@pytest.mark.parametrize(("interval_ms", "expected"), [(0, None), (-5, None), (250, 0.25)])
def test_sweep_interval(tmp_path, interval_ms: int, expected) -> None:
    config = load_config(AppSettings(media_root=tmp_path / "media", cleanup_interval_ms=interval_ms))

    assert config.sweep_interval_seconds == expected
    assert config.media_paths.images.is_dir()
    assert config.open_windows == {"album": 60, "guest": 300}
