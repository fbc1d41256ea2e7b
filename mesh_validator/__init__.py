"""
Istio配置校验模块

该模块负责：
1. 从配置快照加载 DestinationRule、VirtualService 及其依赖对象
2. 运行单对象和多对象检查器，生成按对象索引的校验结果
3. 为流量图节点打上 Istio 配置徽标
"""

__version__ = "1.0.0"

from mesh_validator.core.loader import load_snapshot, build_context
from mesh_validator.core.validation_service import IstioValidationsService
from mesh_validator.graph.istio_appender import IstioAppender
from mesh_validator.models.context import ValidationContext
from mesh_validator.models.data_models import (
    Severity,
    IstioCheck,
    IstioValidation,
    IstioValidationKey,
    IstioValidations
)

__all__ = [
    "load_snapshot",
    "build_context",
    "IstioValidationsService",
    "IstioAppender",
    "ValidationContext",
    "Severity",
    "IstioCheck",
    "IstioValidation",
    "IstioValidationKey",
    "IstioValidations"
]
