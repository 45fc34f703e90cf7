import functools
from datetime import date

from conftest import FakeCatalogApi, make_movie, make_page
from moviesync import sync
from moviesync.domain import Category
from moviesync.errors import TransportFailure
from moviesync.repository import MoviesDataRepository


def _patch_client(mocker, api):
    fake = mocker.patch("moviesync.sync.TMDBClient")
    api.close = mocker.Mock()
    fake.return_value = api
    return fake


def _patch_today(mocker):
    mocker.patch(
        "moviesync.sync.MoviesDataRepository",
        functools.partial(MoviesDataRepository, clock=lambda: date(2023, 6, 15)),
    )


def test_main_syncs_every_category(mocker, tmp_path, capsys):
    api = FakeCatalogApi()
    api.script(Category.NOW_PLAYING, make_page(1, 1, [make_movie(1, "2023-06-10")]))
    api.script(Category.COMING_SOON, make_page(1, 1, [make_movie(2, "2023-07-01")]))
    _patch_client(mocker, api)
    _patch_today(mocker)

    exit_code = sync.main(["--db", f"sqlite:///{tmp_path / 'cache.sqlite3'}", "--max-pages", "3"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Reference data: 3 genres" in out
    assert "now_playing: 1 movies cached" in out
    assert "coming_soon: 1 movies cached" in out
    api.close.assert_called_once()


def test_main_returns_non_zero_when_a_cycle_fails(mocker, capsys):
    api = FakeCatalogApi()
    api.script(Category.NOW_PLAYING, TransportFailure("offline"))
    _patch_client(mocker, api)

    exit_code = sync.main(["--db", "sqlite://", "--category", "now_playing"])

    assert exit_code == 1
    assert "now_playing: error: offline" in capsys.readouterr().out


def test_main_returns_non_zero_when_reference_data_fails(mocker):
    api = FakeCatalogApi()
    mocker.patch.object(api, "get_genres", side_effect=TransportFailure("offline"))
    _patch_client(mocker, api)

    assert sync.main(["--db", "sqlite://"]) == 1


def test_load_settings_applies_cli_overrides(tmp_path):
    config_path = tmp_path / "sync.json"
    config_path.write_text('{"api_key": "file-key", "max_pages": 50}')
    args = sync.build_parser().parse_args(["--config", str(config_path), "--max-pages", "2", "--db", "sqlite://"])

    settings = sync.load_settings(args)

    assert settings.api_key == "file-key"
    assert settings.max_pages == 2
    assert settings.db_url == "sqlite://"
