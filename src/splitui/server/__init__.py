"""Proxy server keeping model credentials server-side."""

from splitui.server.app import create_app

__all__ = ["create_app"]
