"""流量图装饰"""

from mesh_validator.graph.istio_appender import IstioAppender

__all__ = ["IstioAppender"]
