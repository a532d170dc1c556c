"""ASGI entrypoint for the cartoon studio app."""

from cartoon_studio.api.app import create_app
from cartoon_studio.containers import build_container

app = create_app(build_container())
