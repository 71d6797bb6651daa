"""
Command line interface.
"""

from flashdeck.cli.main import app, main

__all__ = ["app", "main"]
