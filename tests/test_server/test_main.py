"""
Tests for blueprint_ai/server/main.py - CLI and app wiring.
"""

from unittest.mock import patch

from blueprint_ai.server.main import create_app, main, parse_args


class TestCli:
    """Tests for argument parsing and the runner entry point."""

    def test_defaults(self):
        args = parse_args([])

        assert args.host == "127.0.0.1"
        assert args.port == 8765
        assert args.reload is False
        assert args.log_level == "info"

    def test_main_passes_flags_to_runner(self):
        with patch("blueprint_ai.server.main.run_server") as run_server:
            main(["--host", "0.0.0.0", "--port", "9000", "--log-level", "debug"])

        run_server.assert_called_once_with(host="0.0.0.0", port=9000, reload=False, log_level="debug")


class TestApp:
    def test_routes_registered(self):
        paths = {route.path for route in create_app().routes}

        assert {"/ws", "/api/health", "/api/status", "/"} <= paths
