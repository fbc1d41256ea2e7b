"""Web服务"""

from mesh_validator.web.server import create_app, WebServer

__all__ = ["create_app", "WebServer"]
