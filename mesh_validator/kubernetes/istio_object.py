"""
通用配置对象

配置对象的 spec 是一棵无固定模式的树（字符串/数字/布尔/列表/字典），
检查器在使用处按字段路径取值。所有取值辅助方法在字段缺失或类型不符时返回 None，
从不抛出异常。
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional

# spec/http[0]/route[1] 风格路径中的下标
_INDEX_PATTERN = re.compile(r"^(?P<field>[^\[\]]*)\[(?P<index>\d+)\]$")


def as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def as_list(value: Any) -> Optional[List[Any]]:
    return value if isinstance(value, list) else None


def as_dict(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


def as_number(value: Any) -> Optional[float]:
    # bool 是 int 的子类，需要单独排除
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


def string_map(value: Any) -> Dict[str, str]:
    """只保留值为字符串的条目"""
    mapping = as_dict(value) or {}
    return {k: v for k, v in mapping.items() if isinstance(k, str) and isinstance(v, str)}


def lookup(tree: Any, path: str) -> Any:
    """
    按路径读取嵌套字段

    Args:
        tree: 嵌套的 dict/list 结构
        path: 以 / 分隔的路径，支持下标，例如 trafficPolicy/tls/mode 或 http[0]/route

    Returns:
        字段值，路径不存在或中途类型不符时返回 None
    """
    current = tree
    for segment in path.split("/"):
        if not segment:
            continue
        match = _INDEX_PATTERN.match(segment)
        if match:
            if match.group("field"):
                current = as_dict(current)
                if current is None:
                    return None
                current = current.get(match.group("field"))
            items = as_list(current)
            index = int(match.group("index"))
            if items is None or index >= len(items):
                return None
            current = items[index]
        else:
            current = as_dict(current)
            if current is None:
                return None
            current = current.get(segment)
    return current


@dataclass
class IstioObject:
    """Istio / Kubernetes 配置对象"""
    kind: str
    name: str
    namespace: str
    spec: Dict[str, Any] = field(default_factory=dict)
    cluster: str = ""
    labels: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Optional['IstioObject']:
        """从解析后的 YAML 清单构造对象，缺少 kind/name 时返回 None"""
        if not isinstance(raw, dict):
            return None
        metadata = as_dict(raw.get("metadata")) or {}
        kind = as_str(raw.get("kind"))
        name = as_str(metadata.get("name"))
        if not kind or not name:
            return None
        return cls(
            kind=kind,
            name=name,
            namespace=as_str(metadata.get("namespace")) or "default",
            spec=as_dict(raw.get("spec")) or {},
            cluster=as_str(metadata.get("clusterName")) or "",
            labels=string_map(metadata.get("labels")),
        )

    def get(self, path: str) -> Any:
        return lookup(self.spec, path)

    def get_str(self, path: str) -> Optional[str]:
        return as_str(self.get(path))

    def get_list(self, path: str) -> Optional[List[Any]]:
        return as_list(self.get(path))

    def get_dict(self, path: str) -> Optional[Dict[str, Any]]:
        return as_dict(self.get(path))

    def get_strings(self, path: str) -> List[str]:
        """读取字符串列表，跳过非字符串元素；单个字符串视为只有一个元素的列表"""
        value = self.get(path)
        if isinstance(value, str):
            return [value]
        return [item for item in as_list(value) or [] if isinstance(item, str)]

    def __str__(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


@dataclass
class Service:
    """Kubernetes Service"""
    name: str
    namespace: str
    labels: Dict[str, str] = field(default_factory=dict)
    selector: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Optional['Service']:
        obj = IstioObject.from_dict(raw)
        if obj is None:
            return None
        return cls(
            name=obj.name,
            namespace=obj.namespace,
            labels=obj.labels,
            selector=string_map(obj.get("selector")),
        )


@dataclass
class Workload:
    """工作负载（Deployment / StatefulSet / Pod 等）"""
    name: str
    namespace: str
    labels: Dict[str, str] = field(default_factory=dict)
    type: str = "Deployment"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Optional['Workload']:
        obj = IstioObject.from_dict(raw)
        if obj is None:
            return None
        # 优先使用 Pod 模板上的标签，它们才是实际参与 selector 匹配的标签
        template_labels = string_map(obj.get("template/metadata/labels"))
        return cls(
            name=obj.name,
            namespace=obj.namespace,
            labels=template_labels or obj.labels,
            type=obj.kind,
        )


@dataclass
class RegistryStatus:
    """控制平面注册表中的服务记录，用于覆盖多集群等本地不可见的目标"""
    hostname: str

    @classmethod
    def from_dict(cls, raw: Any) -> Optional['RegistryStatus']:
        if isinstance(raw, str):
            return cls(hostname=raw)
        hostname = as_str((as_dict(raw) or {}).get("hostname"))
        return cls(hostname=hostname) if hostname else None


@dataclass
class MTLSDetails:
    """mTLS 相关的只读视图"""
    mesh_peer_authentications: List[IstioObject] = field(default_factory=list)
    peer_authentications: List[IstioObject] = field(default_factory=list)

    @classmethod
    def from_peer_authentications(
        cls,
        peer_authentications: List[IstioObject],
        root_namespace: str = "istio-system"
    ) -> 'MTLSDetails':
        """
        按作用范围拆分 PeerAuthentication

        根命名空间下且没有 selector 的对象是网格级策略，其余为命名空间级
        """
        mesh, scoped = [], []
        for pa in peer_authentications:
            if pa.namespace == root_namespace and not string_map(pa.get("selector/matchLabels")):
                mesh.append(pa)
            else:
                scoped.append(pa)
        return cls(
            mesh_peer_authentications=mesh,
            peer_authentications=scoped,
        )

    def namespace_peer_authentications(self, namespace: str) -> List[IstioObject]:
        return [pa for pa in self.peer_authentications if pa.namespace == namespace]
