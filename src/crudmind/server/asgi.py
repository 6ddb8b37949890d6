"""ASGI entry point for running the crudmind server via uvicorn CLI.

Used by `crudmind start --detach` to launch the server as a subprocess:
    python -m uvicorn crudmind.server.asgi:app --host ... --port ...
"""

from crudmind.config.loader import load_config
from crudmind.server.app import create_app

config = load_config()
app = create_app(config)
