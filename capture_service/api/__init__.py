"""HTTP front door for the capture service."""

from .main import create_app, run_server

__all__ = ["create_app", "run_server"]
