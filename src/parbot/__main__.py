"""Parbot CLI entry point."""

from parbot.cli import app

if __name__ == "__main__":
    app()
