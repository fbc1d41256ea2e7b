"""DestinationRule 检查器"""

from mesh_validator.checkers.destinationrules.meshwide_mtls_checker import MeshWideMTLSChecker
from mesh_validator.checkers.destinationrules.namespacewide_mtls_checker import NamespaceWideMTLSChecker
from mesh_validator.checkers.destinationrules.no_dest_checker import NoDestinationChecker
from mesh_validator.checkers.destinationrules.multi_match_checker import MultiMatchChecker

__all__ = [
    "MeshWideMTLSChecker",
    "NamespaceWideMTLSChecker",
    "NoDestinationChecker",
    "MultiMatchChecker"
]
