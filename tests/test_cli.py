"""Tests for the operator CLI."""

import json

import pytest

from shortlinks.cli import build_parser, main


@pytest.fixture
def run_cli(capsys):
    def run(*argv):
        code = main(["--database-url", "memory://", "--json", *argv])
        captured = capsys.readouterr()
        return code, captured.out, captured.err
    return run


class TestCLI:
    """Each invocation gets a fresh in-memory store."""

    def test_parser_requires_command(self, capsys):
        assert main(["--database-url", "memory://"]) == 1

    def test_parser_options(self):
        args = build_parser().parse_args(
            ["--database-url", "memory://", "shorten", "example.com", "--slug", "abc", "--owner", "u1"]
        )

        assert args.command == "shorten"
        assert args.url == "example.com"
        assert args.slug == "abc"
        assert args.owner == "u1"

    def test_shorten(self, run_cli):
        code, out, _ = run_cli("shorten", "example.com/x", "--slug", "Cli-Link")

        assert code == 0
        data = json.loads(out[out.index("{"):])["data"]
        assert data["short_code"] == "cli-link"
        assert data["original_url"] == "https://example.com/x"

    def test_shorten_invalid_url(self, run_cli):
        code, _, err = run_cli("shorten", "javascript:alert(1)")

        assert code == 1
        assert json.loads(err)["success"] is False

    def test_resolve_unknown(self, run_cli):
        code, _, err = run_cli("resolve", "missing")

        assert code == 1
        assert "not found" in json.loads(err)["message"]

    def test_list_empty(self, run_cli):
        code, out, _ = run_cli("list")

        assert code == 0
        assert json.loads(out[out.index("{"):])["count"] == 0

    def test_analytics_unknown(self, run_cli):
        code, _, _ = run_cli("analytics", "missing")
        assert code == 1

    def test_health(self, run_cli):
        code, out, _ = run_cli("health")

        assert code == 0
        assert json.loads(out[out.index("{"):])["health"]["overall"] is True

    def test_init_db_memory_is_noop(self, run_cli):
        code, _, _ = run_cli("init-db")
        assert code == 0
