"""
网格主机名模型

把原始主机字符串（短名、svc.ns、FQDN、通配符）解析为 (service, namespace, cluster) 三元组，
并提供统一的主机比较。所有需要比较主机的检查器都必须通过 Host.matches 判断，
不允许各自实现字符串比较。
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

DEFAULT_IDENTITY_DOMAIN = "svc.cluster.local"

# 网格级通配主机
MESH_WIDE_HOSTS = ("*", "*.local")


@dataclass(frozen=True)
class Host:
    """解析后的网格主机"""
    service: str
    namespace: str
    cluster: str = ""
    identity_domain: str = field(default=DEFAULT_IDENTITY_DOMAIN, compare=False)

    def is_wildcard(self) -> bool:
        return "*" in self.service

    def is_external(self) -> bool:
        """没能解析出命名空间的外部域名，例如 www.google.com"""
        return not self.is_wildcard() and "." in self.service

    def fqdn(self) -> str:
        if self.is_wildcard() or self.is_external():
            return self.service
        return f"{self.service}.{self.namespace}.{self.identity_domain}"

    def matches(self, other: 'Host') -> bool:
        """
        判断两个主机是否指向同一目标

        任意一方为 * 时总是匹配；通配主机按后缀覆盖比较；否则比较三元组
        """
        if self.service == "*" or other.service == "*":
            return True
        if self.is_wildcard() and other.is_wildcard():
            mine, theirs = _wildcard_suffix(self.service), _wildcard_suffix(other.service)
            return mine.endswith(theirs) or theirs.endswith(mine)
        if self.is_wildcard():
            return other.fqdn().endswith(_wildcard_suffix(self.service))
        if other.is_wildcard():
            return self.fqdn().endswith(_wildcard_suffix(other.service))
        return (self.service, self.namespace, self.cluster) == (other.service, other.namespace, other.cluster)

    def is_mesh_wide(self) -> bool:
        return self.service in MESH_WIDE_HOSTS

    def wide_namespace(self) -> Optional[str]:
        """
        命名空间级通配主机（*.ns.svc.cluster.local）对应的命名空间，其它主机返回 None
        """
        prefix, suffix = "*.", "." + self.identity_domain
        if not (self.service.startswith(prefix) and self.service.endswith(suffix)):
            return None
        namespace = self.service[len(prefix):-len(suffix)]
        if not namespace or "." in namespace or "*" in namespace:
            return None
        return namespace

    def __str__(self) -> str:
        return self.fqdn()


def _wildcard_suffix(service: str) -> str:
    return service[service.index("*") + 1:]


def get_host(
    raw: str,
    namespace: str,
    cluster: str = "",
    known_namespaces: Optional[Iterable[str]] = None,
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN
) -> Host:
    """
    解析原始主机字符串

    Args:
        raw: 配置中写的主机名
        namespace: 定义该主机的对象所在命名空间（原始字符串省略命名空间时使用）
        cluster: 定义该主机的对象所在集群
        known_namespaces: 已知命名空间名，决定 svc.ns 形式能否拆分
        identity_domain: 集群域名后缀

    Returns:
        解析后的 Host
    """
    raw = raw.strip()

    def build(service: str, ns: str) -> Host:
        return Host(service=service, namespace=ns, cluster=cluster, identity_domain=identity_domain)

    # 通配主机原样保留，不再拆分
    if "*" in raw:
        return build(raw, namespace)

    parts = raw.split(".")
    if len(parts) == 1:
        return build(raw, namespace)

    for suffix in ("." + identity_domain, ".svc"):
        if raw.endswith(suffix):
            head = raw[:-len(suffix)].split(".")
            if len(head) == 2 and all(head):
                return build(head[0], head[1])

    known = set(known_namespaces or [])
    known.add(namespace)
    if len(parts) == 2 and parts[0] and parts[1] in known:
        return build(parts[0], parts[1])

    return build(raw, namespace)


def parse_two_part_host(host: Host) -> Tuple[str, str]:
    """返回主机的 (service, namespace)"""
    return host.service, host.namespace


def host_matches(
    first: str,
    first_namespace: str,
    second: str,
    second_namespace: str,
    known_namespaces: Optional[Iterable[str]] = None,
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN
) -> bool:
    """解析并比较两个原始主机字符串"""
    known = list(known_namespaces or [])
    return get_host(first, first_namespace, "", known, identity_domain).matches(
        get_host(second, second_namespace, "", known, identity_domain)
    )
