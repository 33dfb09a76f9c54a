"""Web service module"""

from .app import create_app, start_server
from .server import WebServer

__all__ = ["create_app", "start_server", "WebServer"]
