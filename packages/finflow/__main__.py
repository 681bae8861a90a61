"""Running as a module: ``python -m finflow``."""

from .cli import app

app()
