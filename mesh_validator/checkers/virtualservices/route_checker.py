"""
路由检查

逐个检查 VirtualService 的 http/tcp/tls 路由块：
- 只有一个目标且权重小于 100 时提示（剩余流量无处可去）
- 同一路由块内重复出现的 (host, subset) 目标逐个提示，host 按解析后的主机比较
该检查只给出建议，不会让对象失效。
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from mesh_validator.checkers.base import Checker
from mesh_validator.kubernetes.filters import ROUTE_PROTOCOLS
from mesh_validator.kubernetes.host import Host, get_host, DEFAULT_IDENTITY_DOMAIN
from mesh_validator.kubernetes.istio_object import IstioObject, as_dict, as_list, as_number, as_str
from mesh_validator.models.data_models import IstioCheck, build_check


@dataclass
class RouteChecker(Checker):
    virtual_service: IstioObject
    namespaces: List[str] = field(default_factory=list)
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN

    def check(self) -> Tuple[List[IstioCheck], bool]:
        validations: List[IstioCheck] = []
        for protocol in ROUTE_PROTOCOLS:
            validations.extend(self._check_routes_for(protocol))
        return validations, True

    def _check_routes_for(self, kind: str) -> List[IstioCheck]:
        validations: List[IstioCheck] = []

        for route_idx, route in enumerate(self.virtual_service.get_list(kind) or []):
            route_item = as_dict(route)
            if route_item is None:
                continue
            destination_weights = as_list(route_item.get("route"))
            if not destination_weights:
                continue

            if len(destination_weights) == 1:
                weight = as_number((as_dict(destination_weights[0]) or {}).get("weight"))
                if weight is not None and weight < 100:
                    validations.append(build_check(
                        "virtualservices.route.singleweight",
                        f"spec/{kind}[{route_idx}]/route[0]/weight"
                    ))

            validations.extend(self._track_subsets(route_idx, kind, destination_weights))

        return validations

    def _track_subsets(self, route_idx: int, kind: str, destination_weights: List) -> List[IstioCheck]:
        # (解析后的 host, subset) -> 出现位置，按首次出现的顺序保存
        subset_collisions: Dict[Tuple[Host, str], List[int]] = {}
        for dest_idx, destination_weight in enumerate(destination_weights):
            destination = as_dict((as_dict(destination_weight) or {}).get("destination"))
            if destination is None:
                continue
            raw_host, subset = as_str(destination.get("host")), as_str(destination.get("subset"))
            if not raw_host or not raw_host.strip() or subset is None:
                continue
            host = get_host(raw_host, self.virtual_service.namespace, self.virtual_service.cluster,
                            self.namespaces, self.identity_domain)
            subset_collisions.setdefault((host, subset), []).append(dest_idx)

        validations: List[IstioCheck] = []
        for dup_idxs in subset_collisions.values():
            if len(dup_idxs) < 2:
                continue
            for dup_idx in dup_idxs:
                validations.append(build_check(
                    "virtualservices.route.repeatedsubset",
                    f"spec/{kind}[{route_idx}]/route[{dup_idx}]/subset"
                ))
        return validations
