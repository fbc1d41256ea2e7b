"""
Istio 图谱装饰器

为流量图节点打上与 Istio 配置相关的徽标：
- 熔断：node["metadata"]["hasCB"] = True
- 入口网关：node["metadata"]["isIngressGateway"] = {网关名: [主机名]}
- VirtualService：node["metadata"]["hasVS"] = {VirtualService名: [主机名]}，
  以及 hasRequestRouting / hasRequestTimeout / hasFaultInjection /
  hasTrafficShifting / hasTCPTrafficShifting 标记

这里只做简单的配置查找，不做跨对象的关联校验。

节点格式:
    {
        "id": "...",
        "nodeType": "service" | "app" | "workload",
        "namespace": "...",
        "service": "...",
        "app": "...",
        "version": "...",
        "workload": "...",
        "metadata": {"destServices": [{"namespace": "...", "name": "..."}], ...}
    }
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from mesh_validator.kubernetes.host import Host, get_host, DEFAULT_IDENTITY_DOMAIN
from mesh_validator.kubernetes.istio_object import IstioObject, Workload, as_dict, as_list, string_map
from mesh_validator.kubernetes.filters import find_service
from mesh_validator.kubernetes.selector import selector_matches
from mesh_validator.models.context import ValidationContext

logger = logging.getLogger(__name__)

NODE_TYPE_SERVICE = "service"
NODE_TYPE_APP = "app"
NODE_TYPE_WORKLOAD = "workload"

HAS_CB = "hasCB"
HAS_VS = "hasVS"
HAS_REQUEST_ROUTING = "hasRequestRouting"
HAS_REQUEST_TIMEOUT = "hasRequestTimeout"
HAS_FAULT_INJECTION = "hasFaultInjection"
HAS_TRAFFIC_SHIFTING = "hasTrafficShifting"
HAS_TCP_TRAFFIC_SHIFTING = "hasTCPTrafficShifting"
IS_INGRESS_GATEWAY = "isIngressGateway"
IS_SERVICE_ENTRY = "isServiceEntry"
IS_EGRESS_CLUSTER = "isEgressCluster"
DEST_SERVICES = "destServices"

INGRESS_COMPONENT_LABEL = "operator.istio.io/component"
INGRESS_COMPONENT_VALUE = "IngressGateways"

CIRCUIT_BREAKER_FIELDS = ("connectionPool", "outlierDetection")

TrafficMap = Union[Dict[str, Dict[str, Any]], List[Dict[str, Any]]]


def _nodes(traffic_map: TrafficMap) -> List[Dict[str, Any]]:
    if isinstance(traffic_map, dict):
        return list(traffic_map.values())
    return list(traffic_map)


def _metadata(node: Dict[str, Any]) -> Dict[str, Any]:
    return node.setdefault("metadata", {})


def is_version_ok(version: Optional[str]) -> bool:
    return bool(version) and version != "unknown"


def has_circuit_breaker_policy(traffic_policy: Any) -> bool:
    policy = as_dict(traffic_policy) or {}
    return any(policy.get(name) is not None for name in CIRCUIT_BREAKER_FIELDS)


def _route_blocks(virtual_service: IstioObject, protocol: str) -> List[Dict[str, Any]]:
    return [block for block in virtual_service.get_list(protocol) or [] if isinstance(block, dict)]


def has_request_routing(virtual_service: IstioObject) -> bool:
    """任一路由块带 match 条件或有多个目标"""
    for protocol in ("http", "tcp", "tls"):
        for block in _route_blocks(virtual_service, protocol):
            if block.get("match") or len(as_list(block.get("route")) or []) > 1:
                return True
    return False


def has_request_timeout(virtual_service: IstioObject) -> bool:
    return any(block.get("timeout") for block in _route_blocks(virtual_service, "http"))


def has_fault_injection(virtual_service: IstioObject) -> bool:
    return any(block.get("fault") for block in _route_blocks(virtual_service, "http"))


def has_traffic_shifting(virtual_service: IstioObject, protocol: str = "http") -> bool:
    return any(len(as_list(block.get("route")) or []) > 1 for block in _route_blocks(virtual_service, protocol))


class IstioAppender:
    """Istio 图谱装饰器"""

    def __init__(
        self,
        context: ValidationContext,
        app_label_name: str = "app",
        version_label_name: str = "version",
        identity_domain: str = DEFAULT_IDENTITY_DOMAIN
    ):
        self.context = context
        self.app_label_name = app_label_name
        self.version_label_name = version_label_name
        self.identity_domain = identity_domain
        self.known_namespaces = context.all_namespaces()

    def append_graph(self, traffic_map: TrafficMap, namespaces: Optional[Iterable[str]] = None) -> TrafficMap:
        """
        装饰流量图

        Args:
            traffic_map: {节点ID: 节点} 或节点列表，原地修改
            namespaces: 需要装饰的命名空间，默认取图中节点出现的命名空间

        Returns:
            装饰后的流量图（同一对象）
        """
        nodes = _nodes(traffic_map)
        if not nodes:
            return traffic_map

        if namespaces is None:
            namespaces = []
            for node in nodes:
                ns = node.get("namespace")
                if ns and ns not in namespaces:
                    namespaces.append(ns)

        for namespace in namespaces:
            self.apply_circuit_breakers(nodes, namespace)
            self.apply_virtual_services(nodes, namespace)
            self.add_labels(nodes, namespace)
        self.decorate_gateways(nodes)

        logger.debug(f"✓ Istio 徽标装饰完成: {len(nodes)} 个节点")
        return traffic_map

    def has_circuit_breaker(self, destination_rule: IstioObject, namespace: str, service: str, version: str = "") -> bool:
        """
        DestinationRule 是否为指定服务（及版本）配置了熔断

        顶层 trafficPolicy 对所有版本生效；版本为空时任一子集的熔断都算
        """
        host = destination_rule.get_str("host")
        if not host:
            return False
        resolved = get_host(
            host, destination_rule.namespace, destination_rule.cluster,
            self.known_namespaces, self.identity_domain
        )
        if not resolved.matches(Host(service=service, namespace=namespace, identity_domain=self.identity_domain)):
            return False

        if has_circuit_breaker_policy(destination_rule.get("trafficPolicy")):
            return True

        for subset in destination_rule.get_list("subsets") or []:
            subset = as_dict(subset)
            if subset is None or not has_circuit_breaker_policy(subset.get("trafficPolicy")):
                continue
            if not version or string_map(subset.get("labels")).get(self.version_label_name) == version:
                return True
        return False

    def is_valid_host(self, virtual_service: IstioObject, namespace: str, service: str) -> bool:
        """VirtualService 的主机是否覆盖指定服务"""
        target = Host(service=service, namespace=namespace, identity_domain=self.identity_domain)
        for host in virtual_service.get_strings("hosts"):
            resolved = get_host(
                host, virtual_service.namespace, virtual_service.cluster,
                self.known_namespaces, self.identity_domain
            )
            if resolved.matches(target):
                return True
        return False

    def apply_circuit_breakers(self, nodes: List[Dict[str, Any]], namespace: str):
        # 只装饰请求命名空间中的节点，DestinationRule 也只取该命名空间的
        destination_rules = [dr for dr in self.context.destination_rules if dr.namespace == namespace]

        for node in nodes:
            if node.get("namespace") != namespace:
                continue

            node_type = node.get("nodeType")
            version = node.get("version") or ""
            if node_type == NODE_TYPE_SERVICE:
                candidates = [(namespace, node.get("service") or "", "")]
            elif node_type == NODE_TYPE_APP or is_version_ok(version):
                version = version if is_version_ok(version) else ""
                candidates = [
                    (ds.get("namespace") or namespace, ds.get("name") or "", version)
                    for ds in _metadata(node).get(DEST_SERVICES) or []
                ]
            else:
                continue

            if any(
                self.has_circuit_breaker(dr, ns, service, ver)
                for ns, service, ver in candidates if service
                for dr in destination_rules
            ):
                _metadata(node)[HAS_CB] = True

    def apply_virtual_services(self, nodes: List[Dict[str, Any]], namespace: str):
        virtual_services = [vs for vs in self.context.virtual_services if vs.namespace == namespace]

        for node in nodes:
            if node.get("nodeType") != NODE_TYPE_SERVICE or node.get("namespace") != namespace:
                continue
            service = node.get("service") or ""
            for virtual_service in virtual_services:
                if not self.is_valid_host(virtual_service, namespace, service):
                    continue

                metadata = _metadata(node)
                vs_metadata = metadata.setdefault(HAS_VS, {})
                hosts = virtual_service.get_strings("hosts")
                if hosts:
                    vs_metadata[virtual_service.name] = hosts

                if has_request_routing(virtual_service):
                    metadata[HAS_REQUEST_ROUTING] = True
                if has_request_timeout(virtual_service):
                    metadata[HAS_REQUEST_TIMEOUT] = True
                if has_fault_injection(virtual_service):
                    metadata[HAS_FAULT_INJECTION] = True
                if has_traffic_shifting(virtual_service, "http"):
                    metadata[HAS_TRAFFIC_SHIFTING] = True
                if has_traffic_shifting(virtual_service, "tcp"):
                    metadata[HAS_TCP_TRAFFIC_SHIFTING] = True
                break

    def add_labels(self, nodes: List[Dict[str, Any]], namespace: str):
        """服务节点缺少 app 时，从服务定义补上 app 标签，便于按应用分组"""
        for node in nodes:
            if node.get("nodeType") != NODE_TYPE_SERVICE or node.get("namespace") != namespace or node.get("app"):
                continue
            metadata = _metadata(node)
            # ServiceEntry 和出口集群没有服务定义
            if IS_SERVICE_ENTRY in metadata or IS_EGRESS_CLUSTER in metadata:
                continue

            service = find_service(node.get("service") or "", self.context.services, namespace)
            if service is None or service.namespace != namespace:
                logger.debug(f"未找到服务定义，无法补充 app 标签: {namespace}/{node.get('service')}")
                continue
            app = service.labels.get(self.app_label_name)
            if app:
                node["app"] = app

    def ingress_gateway_workloads(self) -> List[Workload]:
        return [
            workload for workload in self.context.workloads
            if workload.type == "Deployment"
            and workload.labels.get(INGRESS_COMPONENT_LABEL) == INGRESS_COMPONENT_VALUE
        ]

    def decorate_gateways(self, nodes: List[Dict[str, Any]]):
        """找到图中的入口网关节点，并标注选中它们的 Gateway 所监听的主机名"""
        mapping = []
        for workload in self.ingress_gateway_workloads():
            gateway_nodes = []
            for node in nodes:
                if IS_INGRESS_GATEWAY in _metadata(node):
                    continue
                if node.get("nodeType") not in (NODE_TYPE_APP, NODE_TYPE_WORKLOAD):
                    continue
                if node.get("app") == workload.labels.get(self.app_label_name) and node.get("namespace") == workload.namespace:
                    _metadata(node)[IS_INGRESS_GATEWAY] = {}
                    gateway_nodes.append(node)
            if gateway_nodes:
                mapping.append((workload, gateway_nodes))

        if not mapping:
            return

        for gateway in self.context.gateways:
            selector = string_map(gateway.get("selector"))
            hostnames = []
            for server in gateway.get_list("servers") or []:
                server = as_dict(server) or {}
                hostnames.extend(host for host in as_list(server.get("hosts")) or [] if isinstance(host, str))

            for workload, gateway_nodes in mapping:
                if selector_matches(selector, workload.labels):
                    for node in gateway_nodes:
                        _metadata(node)[IS_INGRESS_GATEWAY][gateway.name] = list(hostnames)
