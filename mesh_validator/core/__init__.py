"""核心校验引擎"""

from mesh_validator.core.validation_service import IstioValidationsService, run_checkers, validate
from mesh_validator.core.loader import load_snapshot, build_context

__all__ = [
    "IstioValidationsService",
    "run_checkers",
    "validate",
    "load_snapshot",
    "build_context"
]
