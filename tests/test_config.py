import json

import pytest

from moviesync.config import SyncSettings


def test_from_env_reads_overrides(monkeypatch):
    monkeypatch.setenv("TMDB_API_KEY", "env-key")
    monkeypatch.setenv("MOVIESYNC_MAX_PAGES", "7")
    monkeypatch.setenv("MOVIESYNC_NOW_PLAYING_DAYS", "14")
    monkeypatch.setenv("MOVIESYNC_DB_URL", "sqlite://")

    settings = SyncSettings.from_env()

    assert settings.api_key == "env-key"
    assert settings.max_pages == 7
    assert settings.now_playing_days == 14
    assert settings.db_url == "sqlite://"


def test_from_json_file(tmp_path):
    config_path = tmp_path / "sync.json"
    config_path.write_text(json.dumps({"api_key": "file-key", "workers": 2, "region": "DE"}))

    settings = SyncSettings.from_json_file(config_path)

    assert settings.api_key == "file-key"
    assert settings.workers == 2
    assert settings.region == "DE"


def test_unknown_keys_are_rejected():
    with pytest.raises(ValueError, match="Unknown settings"):
        SyncSettings.from_dict({"api_key": "k", "page_size": 20})


@pytest.mark.parametrize(
    "field, value",
    [("max_pages", 0), ("http_retries", -1), ("http_timeout", 0), ("now_playing_days", -1), ("workers", 0)],
)
def test_invalid_bounds_raise(field, value):
    with pytest.raises(ValueError):
        SyncSettings(**{field: value})


def test_replace_returns_validated_copy():
    settings = SyncSettings(api_key="k")

    changed = settings.replace(max_pages=3)

    assert changed.max_pages == 3
    assert changed.api_key == "k"
    assert changed is not settings
    with pytest.raises(ValueError):
        settings.replace(max_pages=0)
