"""
配置对象与网格基础原语

主机名解析、标签选择器以及通用配置对象访问
"""

from mesh_validator.kubernetes.istio_object import (
    IstioObject,
    Service,
    Workload,
    RegistryStatus,
    MTLSDetails
)
from mesh_validator.kubernetes.host import (
    Host,
    get_host,
    parse_two_part_host,
    host_matches,
    DEFAULT_IDENTITY_DOMAIN
)
from mesh_validator.kubernetes.selector import LabelSelector, selector_matches

__all__ = [
    "IstioObject",
    "Service",
    "Workload",
    "RegistryStatus",
    "MTLSDetails",
    "Host",
    "get_host",
    "parse_two_part_host",
    "host_matches",
    "DEFAULT_IDENTITY_DOMAIN",
    "LabelSelector",
    "selector_matches"
]
