from __future__ import annotations

import argparse
import json
from pathlib import Path

import pytest

from storefront_admin import cli
from storefront_admin.cli import main, parse_filters

SEED = {
    "products": [
        {"id": "a", "name": "Apron", "price": 12, "status": "active"},
        {"id": "b", "name": "Blue Mug", "price": 8, "status": "draft"},
        {"id": "c", "name": "Candle", "price": 30, "status": "active"},
    ]
}


@pytest.fixture
def memory_env(monkeypatch, tmp_path):
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps(SEED))
    monkeypatch.setenv("STOREFRONT_BACKEND", "memory")
    monkeypatch.setenv("STOREFRONT_SEED_FILE", str(seed))
    monkeypatch.setenv("STOREFRONT_EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    return tmp_path


def _first_cells(output: str) -> list[str]:
    lines = output.splitlines()
    return [line.split(" | ")[0].strip() for line in lines[3:] if " | " in line]


def test_parse_filters() -> None:
    assert parse_filters(["status=active", "tags=a, b", "search="]) == {"status": "active", "tags": ["a", "b"], "search": ""}
    with pytest.raises(argparse.ArgumentTypeError):
        parse_filters(["status"])


def test_list_sorted_descending(memory_env, capsys) -> None:
    main(["list", "products", "--sort", "price", "--desc"])

    out = capsys.readouterr().out
    assert out.splitlines()[0] == "Products"
    assert "Price ▼" in out.splitlines()[1]
    assert _first_cells(out) == ["Candle", "Apron", "Blue Mug"]
    assert "page 1 of 1 (total 3)" in out


def test_list_with_filters_and_search(memory_env, capsys) -> None:
    main(["list", "products", "--filter", "status=active"])
    active = capsys.readouterr().out
    main(["list", "products", "--search", "mug"])
    searched = capsys.readouterr().out

    assert _first_cells(active) == ["Apron", "Candle"]
    assert _first_cells(searched) == ["Blue Mug"]


def test_list_empty_entity(memory_env, capsys) -> None:
    main(["list", "campaigns"])

    out = capsys.readouterr().out
    assert "No campaigns yet" in out
    assert "(total 0)" in out


def test_export_writes_filtered_file(memory_env, capsys) -> None:
    main(["export", "products", "--filter", "status=active"])

    payload = json.loads(capsys.readouterr().out)
    content = Path(payload["path"]).read_bytes()
    assert payload["path"].startswith(str(memory_env / "exports"))
    assert payload["bytes"] == len(content)
    assert b"Apron" in content and b"Blue Mug" not in content


def test_login_then_logout(memory_env, capsys) -> None:
    main(["login", "--email", "ops@example.com", "--password", "pw"])
    login = json.loads(capsys.readouterr().out)
    main(["logout"])
    logout = json.loads(capsys.readouterr().out)

    assert login["user"]["email"] == "ops@example.com"
    assert logout == {"logged_out": True}


def test_bad_filter_exits_with_error(memory_env, capsys) -> None:
    with pytest.raises(SystemExit) as caught:
        main(["list", "products", "--filter", "status"])

    assert caught.value.code == 1
    assert json.loads(capsys.readouterr().out)["error"] == "CONFIG_ERROR"


def test_missing_base_url_exits_with_error(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)

    with pytest.raises(SystemExit) as caught:
        main(["list", "orders"])

    assert caught.value.code == 1
    assert "STOREFRONT_API_BASE_URL" in json.loads(capsys.readouterr().out)["message"]
