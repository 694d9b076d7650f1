"""Local web app for grading submissions against an answer key."""

from .app import create_app, run_server

__all__ = ["create_app", "run_server"]
