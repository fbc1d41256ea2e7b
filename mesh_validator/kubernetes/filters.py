"""
配置查找辅助函数

检查器和图谱装饰器共用的查找逻辑：工作负载/服务/ServiceEntry/注册表匹配，
VirtualService 路由目标遍历以及网关名规范化。
"""

from typing import Dict, Iterator, List, Tuple, Any, Optional

from mesh_validator.kubernetes.istio_object import IstioObject, Service, Workload, RegistryStatus, as_dict, as_list, as_str

ROUTE_PROTOCOLS = ("http", "tcp", "tls")

MESH_GATEWAY = "mesh"


def has_matching_workloads(service: str, workloads: List[Workload], app_label_name: str = "app") -> bool:
    """是否有工作负载的 app 标签或名称与服务名一致"""
    for workload in workloads:
        if workload.labels.get(app_label_name) == service or workload.name == service:
            return True
    return False


def has_matching_services(service: str, services: List[Service], namespace: Optional[str] = None) -> bool:
    for svc in services:
        if svc.name == service and (namespace is None or svc.namespace == namespace):
            return True
    return False


def find_service(service: str, services: List[Service], namespace: Optional[str] = None) -> Optional[Service]:
    """按名称查找服务，同名时优先返回指定命名空间中的服务"""
    found = None
    for svc in services:
        if svc.name != service:
            continue
        if namespace is None or svc.namespace == namespace:
            return svc
        if found is None:
            found = svc
    return found


def has_matching_service_entries(service: str, service_entries: Dict[str, List[str]]) -> bool:
    """
    ServiceEntry 主机匹配

    ServiceEntry 的主机可以是通配形式（*.example.com），按后缀比较
    """
    for entry_host in service_entries:
        host_key = entry_host
        if "*" in entry_host:
            host_key = entry_host[entry_host.index("*") + 1:]
        if service == entry_host or (host_key != entry_host and service.endswith(host_key)):
            return True
    return False


def has_matching_registry_status(hostname: str, registry_status: List[RegistryStatus]) -> bool:
    return any(status.hostname == hostname for status in registry_status)


def route_destinations(virtual_service: IstioObject) -> Iterator[Tuple[str, int, int, Dict[str, Any], Dict[str, Any]]]:
    """
    遍历 VirtualService 的全部路由目标

    Yields:
        (协议, 路由块下标, 目标下标, 目标权重项, destination)
        结构不符合预期的条目直接跳过
    """
    for protocol in ROUTE_PROTOCOLS:
        for route_idx, route_block in enumerate(virtual_service.get_list(protocol) or []):
            block = as_dict(route_block)
            if block is None:
                continue
            for dest_idx, destination_weight in enumerate(as_list(block.get("route")) or []):
                weight_item = as_dict(destination_weight)
                if weight_item is None:
                    continue
                destination = as_dict(weight_item.get("destination"))
                if destination is None:
                    continue
                yield protocol, route_idx, dest_idx, weight_item, destination


def destination_host_subset(destination: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    return as_str(destination.get("host")), as_str(destination.get("subset"))


def normalize_gateway(gateway: str, namespace: str) -> str:
    """
    把网关引用规范化为 namespace/name

    支持 name、namespace/name 以及 name.namespace.svc.cluster.local 写法，mesh 保持不变
    """
    if gateway == MESH_GATEWAY:
        return gateway
    if "/" in gateway:
        return gateway
    parts = gateway.split(".")
    if len(parts) > 1:
        return f"{parts[1]}/{parts[0]}"
    return f"{namespace}/{gateway}"


def gateway_names(virtual_service: IstioObject) -> List[str]:
    """VirtualService 绑定的网关，未声明时返回 [mesh]"""
    gateways = virtual_service.get_strings("gateways")
    if not gateways:
        return [MESH_GATEWAY]
    normalized = []
    for gateway in gateways:
        name = normalize_gateway(gateway, virtual_service.namespace)
        if name not in normalized:
            normalized.append(name)
    return normalized


def export_to(obj: IstioObject) -> List[str]:
    """exportTo 列表，未声明时视为导出到所有命名空间（*）"""
    values = obj.get_strings("exportTo")
    if not values:
        return ["*"]
    return [obj.namespace if value == "." else value for value in values]


def exports_overlap(first: IstioObject, second: IstioObject) -> bool:
    """两个对象的可见范围是否有交集"""
    first_export, second_export = export_to(first), export_to(second)
    if "*" in first_export or "*" in second_export:
        return True
    return bool(set(first_export) & set(second_export))


def visible_in_namespace(obj: IstioObject, namespace: str) -> bool:
    """对象是否对指定命名空间可见（同命名空间或 exportTo 包含该命名空间）"""
    if obj.namespace == namespace:
        return True
    exports = export_to(obj)
    return "*" in exports or namespace in exports


def service_entry_hostnames(service_entries: List[IstioObject]) -> Dict[str, List[str]]:
    """
    ServiceEntry 主机索引

    Returns:
        {host: [声明该主机的 ServiceEntry 名称]}，按输入顺序
    """
    hostnames: Dict[str, List[str]] = {}
    for entry in service_entries:
        for host in entry.get_strings("hosts"):
            names = hostnames.setdefault(host, [])
            if entry.name not in names:
                names.append(entry.name)
    return hostnames
