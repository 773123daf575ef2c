"""Tests for the operator CLI."""

import json

import pytest

import plugin_main
from config.credentials import PluginCredentials
from plugin.handlers import PluginHandlers
from plugin.state import BrokerState


@pytest.fixture
def handlers(fake_host):
    return PluginHandlers(BrokerState(), fake_host)


@pytest.fixture
def credentials(monkeypatch):
    def fake_loader(is_paper=None):
        return PluginCredentials("PKTEST", "secret", True if is_paper is None else is_paper)

    monkeypatch.setattr(plugin_main, "load_credentials_from_env", fake_loader)


class TestParser:

    def test_order_arguments(self):
        args = plugin_main.build_parser().parse_args(
            ["order", "aapl", "10", "buy", "--type", "limit", "--limit", "101.5"]
        )

        assert args.command == "order"
        assert args.quantity == 10.0
        assert args.order_type == "limit"
        assert args.limit == 101.5
        assert args.live is False

    def test_command_required(self):
        with pytest.raises(SystemExit):
            plugin_main.build_parser().parse_args([])


class TestRun:

    def test_order_command(self, handlers, fake_host, credentials, alpaca_order, capsys):
        fake_host.reply("POST", "/v2/orders", alpaca_order)
        args = plugin_main.build_parser().parse_args(
            ["order", "aapl", "10", "buy", "--type", "limit", "--limit", "101.5", "--persona", "ops"]
        )

        assert plugin_main.run(args, handlers) == 0

        body = json.loads(fake_host.last_request()["body"])
        assert body["symbol"] == "AAPL"
        assert body["limit_price"] == "101.5"
        printed = json.loads(capsys.readouterr().out)
        assert printed["order"]["persona_id"] == "ops"

    def test_live_flag_selects_live_endpoint(self, handlers, fake_host, credentials):
        fake_host.reply("GET", "/v2/positions", [])
        args = plugin_main.build_parser().parse_args(["--live", "positions"])

        plugin_main.run(args, handlers)

        assert fake_host.last_request()["url"] == "https://api.alpaca.markets/v2/positions"

    def test_missing_credentials_exit_code(self, handlers, monkeypatch):
        monkeypatch.setattr(
            plugin_main, "load_credentials_from_env", lambda is_paper=None: PluginCredentials("", "")
        )
        args = plugin_main.build_parser().parse_args(["accounts"])

        assert plugin_main.run(args, handlers) == 2
