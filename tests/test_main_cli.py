from pathlib import Path

import pytest

from main import _parse_args, main
from salesmanager.database import Database


@pytest.fixture()
def environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    db_path = tmp_path / "salesmanager.sqlite3"
    monkeypatch.setenv("SALESMANAGER_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("SALESMANAGER_DB_PATH", str(db_path))
    monkeypatch.setenv("SALESMANAGER_CONTENT_ROOT", str(tmp_path / "content"))
    return db_path


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"
    assert args.port == 8080


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "9090"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 9090


def test_create_store_arguments() -> None:
    args = _parse_args(
        ["create-store", "DEFAULT", "Default store", "shop@example.com", "--supported-language", "fr"]
    )
    assert args.command == "create-store"
    assert args.country == "CA"
    assert args.currency == "CAD"
    assert args.language is None
    assert args.supported_languages == ["fr"]


def test_init_db_seeds_languages(environment: Path) -> None:
    assert main(["init-db", "--language", "en", "--language", "de"]) == 0

    database = Database(environment)
    assert [language.code for language in database.list_languages()] == ["en", "de"]


def test_create_store_command(environment: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["create-store", "DEFAULT", "Default store", "shop@example.com", "--supported-language", "fr"]) == 0
    assert "Created store #1: DEFAULT" in capsys.readouterr().out

    store = Database(environment).get_store("DEFAULT")
    assert store is not None
    assert [language.code for language in store.languages] == ["en", "fr"]

    assert main(["create-store", "DEFAULT", "Again", "shop@example.com"]) == 1
    assert "already exists" in capsys.readouterr().err
