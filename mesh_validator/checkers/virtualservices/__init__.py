"""VirtualService 检查器"""

from mesh_validator.checkers.virtualservices.route_checker import RouteChecker
from mesh_validator.checkers.virtualservices.single_host_checker import SingleHostChecker

__all__ = ["RouteChecker", "SingleHostChecker"]
