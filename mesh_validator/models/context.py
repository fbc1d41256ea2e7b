"""
校验上下文

一次校验所需的全部输入：目标对象、同类兄弟对象、已知命名空间、服务与工作负载、
ServiceEntry 主机、注册表记录以及 mTLS 视图。由调用方（加载器或 API 层）组装，
校验过程中只读。
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from mesh_validator.kubernetes.istio_object import (
    IstioObject,
    Service,
    Workload,
    RegistryStatus,
    MTLSDetails
)


@dataclass
class ValidationContext:
    """校验上下文"""
    # 目标命名空间，None 表示校验所有命名空间的对象
    namespace: Optional[str] = None
    namespaces: List[str] = field(default_factory=list)

    destination_rules: List[IstioObject] = field(default_factory=list)
    virtual_services: List[IstioObject] = field(default_factory=list)
    gateways: List[IstioObject] = field(default_factory=list)

    services: List[Service] = field(default_factory=list)
    workloads: List[Workload] = field(default_factory=list)
    service_entries: Dict[str, List[str]] = field(default_factory=dict)
    registry_status: List[RegistryStatus] = field(default_factory=list)
    mtls_details: MTLSDetails = field(default_factory=MTLSDetails)

    def is_target(self, obj: IstioObject) -> bool:
        return self.namespace is None or obj.namespace == self.namespace

    def target_destination_rules(self) -> List[IstioObject]:
        return [dr for dr in self.destination_rules if self.is_target(dr)]

    def target_virtual_services(self) -> List[IstioObject]:
        return [vs for vs in self.virtual_services if self.is_target(vs)]

    def target_namespaces(self) -> List[str]:
        """需要做多对象检查的命名空间，按首次出现的顺序"""
        if self.namespace is not None:
            return [self.namespace]
        ordered: List[str] = []
        for obj in self.destination_rules + self.virtual_services:
            if obj.namespace not in ordered:
                ordered.append(obj.namespace)
        return ordered

    def all_namespaces(self) -> List[str]:
        """已知命名空间，包括对象自身所在的命名空间"""
        names = list(self.namespaces)
        for obj in self.destination_rules + self.virtual_services:
            if obj.namespace not in names:
                names.append(obj.namespace)
        return names
