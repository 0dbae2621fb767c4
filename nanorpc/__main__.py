"""Entry point for running nanorpc as a module: python -m nanorpc."""

from nanorpc.cli.commands import app

if __name__ == "__main__":
    app()
