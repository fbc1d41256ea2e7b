"""
目标存在性检查

校验 DestinationRule 的主机指向真实存在的服务（Kubernetes Service、工作负载、
ServiceEntry 或控制平面注册表），并校验每个子集的标签能选中至少一个工作负载。
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from mesh_validator.checkers.base import Checker
from mesh_validator.kubernetes.filters import (
    has_matching_workloads,
    has_matching_services,
    has_matching_service_entries,
    has_matching_registry_status,
    find_service,
    route_destinations,
    destination_host_subset
)
from mesh_validator.kubernetes.host import Host, get_host, parse_two_part_host, DEFAULT_IDENTITY_DOMAIN
from mesh_validator.kubernetes.istio_object import (
    IstioObject, Service, Workload, RegistryStatus, as_dict, as_str, string_map
)
from mesh_validator.kubernetes.selector import LabelSelector
from mesh_validator.models.data_models import IstioCheck, Severity, build_check

logger = logging.getLogger(__name__)


@dataclass
class NoDestinationChecker(Checker):
    destination_rule: IstioObject
    namespaces: List[str] = field(default_factory=list)
    workloads: List[Workload] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)
    virtual_services: List[IstioObject] = field(default_factory=list)
    service_entries: Dict[str, List[str]] = field(default_factory=dict)
    registry_status: List[RegistryStatus] = field(default_factory=list)
    app_label_name: str = "app"
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN

    def check(self) -> Tuple[List[IstioCheck], bool]:
        """
        检查主机与子集

        Returns:
            主机不存在，或被 VirtualService 引用的子集选不中任何工作负载时无效；
            未被引用的子集不匹配只降级为提示，不影响有效性
        """
        valid = True
        validations: List[IstioCheck] = []

        raw_host = self.destination_rule.get_str("host")
        if not raw_host:
            return validations, valid

        host = self._resolve(raw_host, self.destination_rule)

        if not self._has_matching_service(host):
            validations.append(build_check("destinationrules.nodest.matchingregistry", "spec/host"))
            return validations, False

        for i, subset in enumerate(self.destination_rule.get_list("subsets") or []):
            inner_subset = as_dict(subset)
            if inner_subset is None:
                continue

            path = f"spec/subsets[{i}]"
            if "labels" not in inner_subset:
                # 不改变有效性：其它子集报错时 valid = False 优先
                validations.append(build_check("destinationrules.nodest.subsetnolabels", path))
                continue

            if as_dict(inner_subset["labels"]) is None:
                continue

            subset_labels = string_map(inner_subset["labels"])
            if self._has_matching_workload(host, subset_labels):
                continue

            validation = build_check("destinationrules.nodest.subsetlabels", path)
            subset_name = as_str(inner_subset.get("name"))
            if subset_name and self._is_subset_referenced(raw_host, subset_name):
                valid = False
            else:
                validation.severity = Severity.INFO
            validations.append(validation)

        return validations, valid

    def _resolve(self, raw_host: str, owner: IstioObject) -> Host:
        return get_host(raw_host, owner.namespace, owner.cluster, self.namespaces, self.identity_domain)

    def _has_matching_service(self, host: Host) -> bool:
        # 通配主机（* 和 *.suffix）总是视为存在
        if host.is_wildcard():
            return True

        local_svc, local_ns = parse_two_part_host(host)
        if not host.is_external():
            namespace_workloads = [wl for wl in self.workloads if wl.namespace == local_ns]
            if has_matching_workloads(local_svc, namespace_workloads, self.app_label_name):
                return True
            if has_matching_services(local_svc, self.services, local_ns):
                return True

        if has_matching_service_entries(host.service, self.service_entries) or \
                has_matching_service_entries(host.fqdn(), self.service_entries):
            return True

        # 注册表覆盖多集群、联邦等本地不可见的目标
        return has_matching_registry_status(host.fqdn(), self.registry_status)

    def _has_matching_workload(self, host: Host, subset_labels: Dict[str, str]) -> bool:
        if host.is_wildcard():
            return True

        service = find_service(host.service.split(".")[0], self.services, host.namespace)
        if service is None or not service.selector:
            return False

        selector = LabelSelector.from_set(service.selector)
        subset_selector = LabelSelector.from_set(subset_labels)
        for workload in self.workloads:
            if workload.namespace != service.namespace:
                continue
            if selector.matches(workload.labels) and subset_selector.matches(workload.labels):
                return True
        return False

    def _is_subset_referenced(self, raw_host: str, subset_name: str) -> bool:
        dr_host = self._resolve(raw_host, self.destination_rule)
        for virtual_service in self.virtual_services:
            for _, _, _, _, destination in route_destinations(virtual_service):
                dest_host, dest_subset = destination_host_subset(destination)
                if not dest_host or dest_subset != subset_name:
                    continue
                if self._resolve(dest_host, virtual_service).matches(dr_host):
                    logger.debug(f"子集 {subset_name} 被 {virtual_service} 引用")
                    return True
        return False
