"""Costwright Web: FastAPI wrapper around the cost comparison engine."""

__version__ = "0.1.0"


def __getattr__(name: str):
    if name == "app":
        from costwright_web.app import app

        return app
    raise AttributeError(f"module 'costwright_web' has no attribute {name!r}")
