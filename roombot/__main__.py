"""Entry point for running roombot as a module."""

from roombot.cli.main import app

if __name__ == "__main__":
    app()
