"""
单主机检查

Istio 会把声明同一主机的所有 VirtualService 合并，这几乎总是配置失误。
两两比较 VirtualService 的主机建立冲突边，再按连通分量划分冲突类，
类中每个对象得到一条提示，并引用同类的其它所有对象。

网关豁免：只有两个对象都只绑定到具体网关（不含 mesh）且网关集合不相交时才不算冲突，
任意一方作用于默认的 mesh 网关时冲突仍然成立。
"""

import logging
from dataclasses import dataclass, field
from typing import List

from mesh_validator.checkers.base import GroupChecker, VIRTUAL_SERVICE_TYPE
from mesh_validator.checkers.references import CollisionGraph
from mesh_validator.kubernetes.filters import gateway_names, MESH_GATEWAY
from mesh_validator.kubernetes.host import Host, get_host, DEFAULT_IDENTITY_DOMAIN
from mesh_validator.kubernetes.istio_object import IstioObject
from mesh_validator.models.data_models import IstioValidations

logger = logging.getLogger(__name__)


@dataclass
class SingleHostChecker(GroupChecker):
    namespace: str
    virtual_services: List[IstioObject]
    exported_virtual_services: List[IstioObject] = field(default_factory=list)
    namespaces: List[str] = field(default_factory=list)
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN

    def check(self) -> IstioValidations:
        objects = list(self.virtual_services) + list(self.exported_virtual_services)
        hosts = [self._hosts(vs) for vs in objects]
        gateways = [set(gateway_names(vs)) for vs in objects]

        graph = CollisionGraph(objects)
        for i in range(len(objects)):
            for j in range(i + 1, len(objects)):
                if self._same_object(objects[i], objects[j]):
                    continue
                if self._gateway_exempt(gateways[i], gateways[j]):
                    continue
                if any(a.matches(b) for a in hosts[i] for b in hosts[j]):
                    graph.add_edge(i, j)

        validations = graph.to_validations(VIRTUAL_SERVICE_TYPE, "virtualservices.singlehost", "spec/hosts")
        if validations:
            logger.debug(f"命名空间 {self.namespace}: {len(validations)} 个 VirtualService 存在主机冲突")
        return validations

    def _hosts(self, virtual_service: IstioObject) -> List[Host]:
        # 每个对象的主机只解析一次，作为本次检查的稳定键
        return [
            get_host(raw, virtual_service.namespace, virtual_service.cluster, self.namespaces, self.identity_domain)
            for raw in virtual_service.get_strings("hosts")
            if raw.strip()
        ]

    @staticmethod
    def _gateway_exempt(first: set, second: set) -> bool:
        if MESH_GATEWAY in first or MESH_GATEWAY in second:
            return False
        return not (first & second)

    @staticmethod
    def _same_object(first: IstioObject, second: IstioObject) -> bool:
        return (first.namespace, first.name) == (second.namespace, second.name)
