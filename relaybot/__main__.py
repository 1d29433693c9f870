"""Entry point for `python -m relaybot`."""

from relaybot.cli.commands import app

if __name__ == "__main__":
    app()
