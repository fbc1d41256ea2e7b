"""
校验结果数据模型

定义检查器和聚合器共用的数据结构：单条检查结果（IstioCheck）、
单个对象的校验结果（IstioValidation）以及按对象标识索引的校验集合（IstioValidations）
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Iterable
from enum import Enum


class Severity(Enum):
    """严重程度"""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    UNKNOWN = "unknown"


# 稳定的消息键 -> (默认严重程度, 展示文本)
# 消息键是对外的枚举词汇，UI 和测试以消息键为准，展示文本可以随时调整
CHECK_DESCRIPTORS: Dict[str, tuple] = {
    "destinationrules.mtls.meshpolicymissing": (
        Severity.ERROR,
        "Mesh-wide Destination Rule enabling mTLS is missing",
    ),
    "destinationrules.mtls.nspolicymissing": (
        Severity.ERROR,
        "Namespace-wide Destination Rule enabling mTLS is missing",
    ),
    "destinationrules.multimatch": (
        Severity.WARNING,
        "More than one Destination Rule for the same host subset combination",
    ),
    "destinationrules.nodest.matchingregistry": (
        Severity.ERROR,
        "This host has no matching entry in the service registry",
    ),
    "destinationrules.nodest.subsetlabels": (
        Severity.ERROR,
        "This subset's labels are not found in any matching host",
    ),
    "destinationrules.nodest.subsetnolabels": (
        Severity.WARNING,
        "This subset has no labels",
    ),
    "virtualservices.route.singleweight": (
        Severity.WARNING,
        "Weight sum should be 100",
    ),
    "virtualservices.route.repeatedsubset": (
        Severity.WARNING,
        "All routes should have different subsets",
    ),
    "virtualservices.singlehost": (
        Severity.WARNING,
        "More than one Virtual Service for same host",
    ),
}


@dataclass
class IstioCheck:
    """单条检查结果"""
    message: str        # 稳定消息键，例如 virtualservices.singlehost
    severity: Severity
    path: str           # 对象 spec 内的定位路径，例如 spec/http[0]/route[1]/weight

    @property
    def text(self) -> str:
        """消息键对应的展示文本"""
        descriptor = CHECK_DESCRIPTORS.get(self.message)
        return descriptor[1] if descriptor else self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.message,
            "message": self.text,
            "severity": self.severity.value,
            "path": self.path,
        }


def build_check(key: str, path: str) -> IstioCheck:
    """
    根据消息键构造检查结果

    Args:
        key: 稳定消息键，必须在 CHECK_DESCRIPTORS 中登记
        path: spec 内的定位路径

    Returns:
        使用默认严重程度的 IstioCheck
    """
    descriptor = CHECK_DESCRIPTORS.get(key)
    severity = descriptor[0] if descriptor else Severity.UNKNOWN
    return IstioCheck(message=key, severity=severity, path=path)


@dataclass(frozen=True, order=True)
class IstioValidationKey:
    """校验集合的键：(对象类型, 命名空间, 名称)"""
    object_type: str
    namespace: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "objectType": self.object_type,
            "namespace": self.namespace,
            "name": self.name,
        }


@dataclass
class IstioValidation:
    """单个配置对象的校验结果"""
    name: str
    object_type: str
    namespace: str = ""
    valid: bool = True
    checks: List[IstioCheck] = field(default_factory=list)
    references: List[IstioValidationKey] = field(default_factory=list)

    @property
    def key(self) -> IstioValidationKey:
        return IstioValidationKey(self.object_type, self.namespace, self.name)

    def add_reference(self, ref: IstioValidationKey):
        """添加引用（去重，保持插入顺序）"""
        if ref != self.key and ref not in self.references:
            self.references.append(ref)

    def merge(self, other: 'IstioValidation', unique_checks: bool = False):
        """
        合并同一对象的另一份校验结果

        Args:
            other: 同一对象的校验结果
            unique_checks: 为 True 时跳过已存在的 (消息键, 路径) 相同的检查结果
        """
        for check in other.checks:
            if unique_checks and any(c.message == check.message and c.path == check.path for c in self.checks):
                continue
            self.checks.append(check)
        self.valid = self.valid and other.valid
        for ref in other.references:
            self.add_reference(ref)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "objectType": self.object_type,
            "namespace": self.namespace,
            "valid": self.valid,
            "checks": [check.to_dict() for check in self.checks],
            "references": [ref.to_dict() for ref in self.references],
        }


class IstioValidations(dict):
    """
    校验集合

    键为 IstioValidationKey，值为对应对象的 IstioValidation。
    不存在的键表示该对象没有任何检查结果，而不是未知对象。
    """

    def merge_validations(self, other: 'IstioValidations', unique_checks: bool = False) -> 'IstioValidations':
        """
        把另一份校验集合合并进来

        检查结果按顺序拼接，有效性取与，引用按顺序去重合并。
        多对象检查器按命名空间分别运行时，同一对象可能被重复报告，此时使用 unique_checks
        """
        for key, validation in other.items():
            current = self.get(key)
            if current is None:
                self[key] = IstioValidation(
                    name=validation.name,
                    object_type=validation.object_type,
                    namespace=validation.namespace,
                    valid=validation.valid,
                    checks=list(validation.checks),
                    references=list(validation.references),
                )
            else:
                current.merge(validation, unique_checks)
        return self

    def is_valid(self) -> bool:
        return all(validation.valid for validation in self.values())

    def summary(self) -> Dict[str, Any]:
        """按严重程度统计检查结果"""
        result = {
            "objectCount": len(self),
            "invalidObjects": 0,
            "errors": 0,
            "warnings": 0,
            "infos": 0,
        }
        for validation in self.values():
            if not validation.valid:
                result["invalidObjects"] += 1
            for check in validation.checks:
                if check.severity == Severity.ERROR:
                    result["errors"] += 1
                elif check.severity == Severity.WARNING:
                    result["warnings"] += 1
                else:
                    result["infos"] += 1
        return result

    def to_dict(self) -> Dict[str, Any]:
        """转换为可 JSON 序列化的结构，按键排序保证输出稳定"""
        grouped: Dict[str, Dict[str, Any]] = {}
        for key in sorted(self.keys()):
            grouped.setdefault(key.object_type, {})[f"{key.namespace}/{key.name}"] = self[key].to_dict()
        return grouped


def single_validation(
    object_type: str,
    namespace: str,
    name: str,
    checks: Iterable[IstioCheck],
    valid: bool,
    references: Optional[Iterable[IstioValidationKey]] = None,
) -> IstioValidations:
    """构造只包含一个对象的校验集合"""
    validation = IstioValidation(
        name=name,
        object_type=object_type,
        namespace=namespace,
        valid=valid,
        checks=list(checks),
    )
    for ref in references or []:
        validation.add_reference(ref)
    validations = IstioValidations()
    validations[validation.key] = validation
    return validations

