"""
命名空间级 mTLS 一致性检查
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from mesh_validator.checkers.base import Checker
from mesh_validator.checkers.destinationrules.meshwide_mtls_checker import has_mutual_tls, TLS_MODE_PATH
from mesh_validator.kubernetes.host import get_host, DEFAULT_IDENTITY_DOMAIN
from mesh_validator.kubernetes.istio_object import IstioObject, MTLSDetails
from mesh_validator.models.data_models import IstioCheck, build_check

logger = logging.getLogger(__name__)


@dataclass
class NamespaceWideMTLSChecker(Checker):
    """
    DestinationRule 对 *.ns.svc.cluster.local 启用双向 TLS 时，
    该命名空间或整个网格中必须至少存在一个 PeerAuthentication
    """
    destination_rule: IstioObject
    mtls_details: MTLSDetails
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN

    def check(self) -> Tuple[List[IstioCheck], bool]:
        validations: List[IstioCheck] = []

        raw_host = self.destination_rule.get_str("host")
        if not raw_host or not has_mutual_tls(self.destination_rule):
            return validations, True

        host = get_host(raw_host, self.destination_rule.namespace, self.destination_rule.cluster,
                        identity_domain=self.identity_domain)
        namespace = host.wide_namespace()
        if namespace is None:
            return validations, True

        # 网格级策略对所有命名空间生效，除非被命名空间级策略覆盖
        if not self.mtls_details.mesh_peer_authentications and \
                not self.mtls_details.namespace_peer_authentications(namespace):
            logger.debug(f"{self.destination_rule} 启用命名空间 {namespace} 的 mTLS，但不存在对应的 PeerAuthentication")
            validations.append(build_check("destinationrules.mtls.nspolicymissing", TLS_MODE_PATH))

        return validations, not validations
