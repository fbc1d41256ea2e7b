"""
配置快照加载器

从配置目录读取网格配置快照并组装校验上下文。目录结构：

    <config_dir>/<资源类型>/<命名空间>/*.yaml
    <config_dir>/registry.json           （可选，注册表主机列表）

YAML 文件可以包含多个文档，也可以是带 items 的 List 对象。
"""

import os
import logging
from typing import Dict, List, Any, Optional, Iterable

import yaml

from mesh_validator.kubernetes.filters import service_entry_hostnames
from mesh_validator.kubernetes.istio_object import (
    IstioObject,
    Service,
    Workload,
    RegistryStatus,
    MTLSDetails,
    as_dict
)
from mesh_validator.models.context import ValidationContext
from mesh_validator.utils.file_utils import load_yaml_documents, load_json_file, load_yaml_file

logger = logging.getLogger(__name__)

RESOURCE_TYPES = [
    "namespaces",
    "services",
    "workloads",
    "virtualservices",
    "destinationrules",
    "gateways",
    "peerauthentications",
    "serviceentries",
]

WORKLOAD_KINDS = ("Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "Pod", "Job", "CronJob")

REGISTRY_FILES = ("registry.json", "registry.yaml", "registry.yml")


def _expand_documents(documents: Iterable[Any]) -> List[Dict[str, Any]]:
    """展开 List 对象，过滤非字典文档"""
    expanded = []
    for doc in documents:
        if not isinstance(doc, dict):
            continue
        items = doc.get("items")
        if isinstance(items, list):
            expanded.extend(item for item in items if isinstance(item, dict))
        else:
            expanded.append(doc)
    return expanded


def _load_resource_files(config_dir: str, resource_type: str) -> List[Dict[str, Any]]:
    """
    加载指定资源类型的所有配置文件
    :param config_dir: 配置目录
    :param resource_type: 资源类型（services/virtualservices等）
    :return: 清单列表，按命名空间和文件名排序
    """
    manifests: List[Dict[str, Any]] = []
    resource_dir = os.path.join(config_dir, resource_type)

    if not os.path.isdir(resource_dir):
        logger.debug(f"资源目录不存在: {resource_dir}")
        return manifests

    for ns in sorted(os.listdir(resource_dir)):
        ns_dir = os.path.join(resource_dir, ns)
        if not os.path.isdir(ns_dir):
            continue
        for config_file in sorted(os.listdir(ns_dir)):
            if not config_file.endswith(('.yaml', '.yml')):
                continue
            config_path = os.path.join(ns_dir, config_file)
            try:
                documents = load_yaml_documents(config_path)
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"加载配置文件时出错: {config_path}: {e}")
                continue
            for manifest in _expand_documents(documents):
                metadata = manifest.setdefault("metadata", {})
                if isinstance(metadata, dict):
                    metadata.setdefault("namespace", ns)
                manifests.append(manifest)

    return manifests


def _load_registry(config_dir: str) -> List[RegistryStatus]:
    for filename in REGISTRY_FILES:
        path = os.path.join(config_dir, filename)
        if not os.path.isfile(path):
            continue
        try:
            data = load_json_file(path) if filename.endswith(".json") else load_yaml_file(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"加载注册表文件时出错: {path}: {e}")
            return []
        if isinstance(data, dict):
            data = data.get("items", [])
        if not isinstance(data, list):
            logger.warning(f"注册表文件格式不正确，应为列表: {path}")
            return []
        records = [RegistryStatus.from_dict(item) for item in data]
        return [record for record in records if record is not None]
    return []


def build_context(
    manifests: List[Dict[str, Any]],
    namespace: Optional[str] = None,
    namespaces: Optional[List[str]] = None,
    registry_status: Optional[List[RegistryStatus]] = None,
    root_namespace: str = "istio-system"
) -> ValidationContext:
    """
    按 kind 分拣清单并组装校验上下文

    Args:
        manifests: 解析后的 YAML 清单
        namespace: 目标命名空间，None 表示全部
        namespaces: 额外的已知命名空间
        registry_status: 注册表记录
        root_namespace: 网格根命名空间，其中无 selector 的 PeerAuthentication 为网格级策略

    Returns:
        校验上下文
    """
    known_namespaces: List[str] = list(namespaces or [])
    objects: Dict[str, List[IstioObject]] = {}
    services: List[Service] = []
    workloads: List[Workload] = []

    for manifest in manifests:
        kind = manifest.get("kind")
        if kind == "Namespace":
            name = (as_dict(manifest.get("metadata")) or {}).get("name")
            if isinstance(name, str) and name not in known_namespaces:
                known_namespaces.append(name)
            continue
        if kind == "Service":
            service = Service.from_dict(manifest)
            if service:
                services.append(service)
            continue
        if kind in WORKLOAD_KINDS:
            workload = Workload.from_dict(manifest)
            if workload:
                workloads.append(workload)
            continue
        obj = IstioObject.from_dict(manifest)
        if obj is None:
            logger.warning("跳过缺少 kind 或 metadata.name 的清单")
            continue
        objects.setdefault(obj.kind, []).append(obj)

    for collection in (services, workloads, *objects.values()):
        for item in collection:
            if item.namespace not in known_namespaces:
                known_namespaces.append(item.namespace)

    return ValidationContext(
        namespace=namespace,
        namespaces=known_namespaces,
        destination_rules=objects.get("DestinationRule", []),
        virtual_services=objects.get("VirtualService", []),
        gateways=objects.get("Gateway", []),
        services=services,
        workloads=workloads,
        service_entries=service_entry_hostnames(objects.get("ServiceEntry", [])),
        registry_status=list(registry_status or []),
        mtls_details=MTLSDetails.from_peer_authentications(
            objects.get("PeerAuthentication", []), root_namespace
        ),
    )


def load_snapshot(
    config_dir: str,
    namespace: Optional[str] = None,
    root_namespace: str = "istio-system"
) -> ValidationContext:
    """
    从配置目录加载快照

    兄弟对象和其它命名空间的对象总是全部加载，namespace 只决定校验目标
    """
    if not os.path.isdir(config_dir):
        raise FileNotFoundError(f"配置目录不存在: {config_dir}")

    logger.info(f"加载配置快照: 目录={config_dir}, 命名空间={namespace or '全部'}")

    manifests: List[Dict[str, Any]] = []
    namespaces: List[str] = []
    for resource_type in RESOURCE_TYPES:
        resource_manifests = _load_resource_files(config_dir, resource_type)
        manifests.extend(resource_manifests)
        resource_dir = os.path.join(config_dir, resource_type)
        if os.path.isdir(resource_dir):
            for ns in sorted(os.listdir(resource_dir)):
                if os.path.isdir(os.path.join(resource_dir, ns)) and ns not in namespaces:
                    namespaces.append(ns)
        if resource_manifests:
            logger.debug(f"  ✓ {resource_type}: {len(resource_manifests)} 个")

    context = build_context(
        manifests,
        namespace=namespace,
        namespaces=namespaces,
        registry_status=_load_registry(config_dir),
        root_namespace=root_namespace,
    )
    logger.info(
        f"✓ 快照加载完成: {len(context.virtual_services)} 个VirtualService, "
        f"{len(context.destination_rules)} 个DestinationRule, {len(context.services)} 个Service"
    )
    return context
