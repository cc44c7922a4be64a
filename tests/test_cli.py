from __future__ import annotations

import json

import pytest

import reddit_query.cli as cli
from reddit_query.core import DEFAULT_TIMEOUT, ParseError, QueryOptions, TransferError


def test_get_args_builds_options() -> None:
    options = cli.get_args(["/r/rust/.json", "--key", "abc", "--headers", "User-Agent: me,Host: fake.com"])

    assert options == QueryOptions(key="abc", headers="User-Agent: me,Host: fake.com")


def test_get_args_defaults_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("REDDIT_QUERY_KEY", "env-key")
    monkeypatch.setenv("REDDIT_QUERY_HEADERS", "User-Agent: env")

    assert cli.get_args(["/.json"]) == QueryOptions(key="env-key", headers="User-Agent: env")


def test_get_args_defaults_to_empty(monkeypatch) -> None:
    monkeypatch.delenv("REDDIT_QUERY_KEY", raising=False)
    monkeypatch.delenv("REDDIT_QUERY_HEADERS", raising=False)

    assert cli.get_args(["/.json"]) == QueryOptions()


def test_main_prints_json(monkeypatch, capsys) -> None:
    calls: list[dict] = []

    def fake_path_query(search_path, options, *, timeout, verify):
        calls.append({"path": search_path, "options": options, "timeout": timeout, "verify": verify})
        return {"kind": "Listing", "data": {"children": []}}

    monkeypatch.setattr(cli, "path_query", fake_path_query)

    cli.main(["/r/python/top/.json?count=5", "--headers", "User-Agent: me", "--insecure", "--indent", "0"])

    out = capsys.readouterr().out
    assert json.loads(out) == {"kind": "Listing", "data": {"children": []}}
    assert out.count("\n") == 1
    assert calls == [
        {
            "path": "/r/python/top/.json?count=5",
            "options": QueryOptions(headers="User-Agent: me"),
            "timeout": DEFAULT_TIMEOUT,
            "verify": False,
        }
    ]


@pytest.mark.parametrize(
    ("error", "prefix"),
    [
        (TransferError("Failed to fetch 'x': refused"), "transfer failed"),
        (ParseError("Response from 'x' is not valid JSON", body="nope"), "parse failed"),
    ],
)
def test_main_reports_failing_stage(monkeypatch, error, prefix) -> None:
    def fake_path_query(search_path, options, *, timeout, verify):
        raise error

    monkeypatch.setattr(cli, "path_query", fake_path_query)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["/.json"])

    assert str(excinfo.value.code).startswith(prefix)


def test_main_rejects_non_positive_timeout() -> None:
    with pytest.raises(SystemExit):
        cli.main(["/.json", "--timeout", "0"])
