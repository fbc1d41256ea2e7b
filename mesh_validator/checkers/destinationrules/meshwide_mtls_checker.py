"""
网格级 mTLS 一致性检查

DestinationRule 对网格级主机（* 或 *.local）启用双向 TLS 时，网格中必须存在网格级
PeerAuthentication。只检查治理策略是否存在，不检查其模式（PERMISSIVE/STRICT 均可）。
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from mesh_validator.checkers.base import Checker
from mesh_validator.kubernetes.host import get_host, DEFAULT_IDENTITY_DOMAIN
from mesh_validator.kubernetes.istio_object import IstioObject, MTLSDetails
from mesh_validator.models.data_models import IstioCheck, build_check

logger = logging.getLogger(__name__)

MUTUAL_TLS_MODES = ("ISTIO_MUTUAL", "MUTUAL")

TLS_MODE_PATH = "spec/trafficPolicy/tls/mode"


def has_mutual_tls(destination_rule: IstioObject) -> bool:
    return destination_rule.get_str("trafficPolicy/tls/mode") in MUTUAL_TLS_MODES


@dataclass
class MeshWideMTLSChecker(Checker):
    destination_rule: IstioObject
    mtls_details: MTLSDetails
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN

    def check(self) -> Tuple[List[IstioCheck], bool]:
        validations: List[IstioCheck] = []

        raw_host = self.destination_rule.get_str("host")
        if not raw_host or not raw_host.strip():
            return validations, True

        host = get_host(raw_host, self.destination_rule.namespace, self.destination_rule.cluster,
                        identity_domain=self.identity_domain)
        if host.is_mesh_wide() and has_mutual_tls(self.destination_rule):
            if not self.mtls_details.mesh_peer_authentications:
                logger.debug(f"{self.destination_rule} 启用网格级 mTLS，但不存在网格级 PeerAuthentication")
                validations.append(build_check("destinationrules.mtls.meshpolicymissing", TLS_MODE_PATH))

        return validations, not validations
