"""Mock batch server for testing."""

from .app import create_app, create_mock_app, run_server

__all__ = ["create_app", "create_mock_app", "run_server"]
