"""数据模型模块"""

from mesh_validator.models.data_models import (
    Severity,
    IstioCheck,
    IstioValidationKey,
    IstioValidation,
    IstioValidations,
    CHECK_DESCRIPTORS,
    build_check,
    single_validation
)

__all__ = [
    "Severity",
    "IstioCheck",
    "IstioValidationKey",
    "IstioValidation",
    "IstioValidations",
    "CHECK_DESCRIPTORS",
    "build_check",
    "single_validation"
]
