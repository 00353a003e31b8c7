"""ASGI entrypoint for the Fiesta exchange API."""

from fiesta.api.app import create_app
from fiesta.containers import build_container

app = create_app(build_container())
