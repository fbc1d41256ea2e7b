"""
DestinationRule 多重匹配检查

多个 DestinationRule 指向同一主机（或通配覆盖的主机）时，Istio 只会采用其中之一，
其余规则静默失效。两条规则都声明了子集时，只有同名子集才算冲突。
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from mesh_validator.checkers.base import GroupChecker, DESTINATION_RULE_TYPE
from mesh_validator.checkers.references import CollisionGraph
from mesh_validator.kubernetes.filters import exports_overlap
from mesh_validator.kubernetes.host import Host, get_host, DEFAULT_IDENTITY_DOMAIN
from mesh_validator.kubernetes.istio_object import IstioObject, as_dict, as_str
from mesh_validator.models.data_models import IstioValidations

logger = logging.getLogger(__name__)


@dataclass
class MultiMatchChecker(GroupChecker):
    destination_rules: List[IstioObject]
    namespaces: List[str] = field(default_factory=list)
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN

    def check(self) -> IstioValidations:
        resolved = [self._resolve(dr) for dr in self.destination_rules]
        subsets = [self._subset_names(dr) for dr in self.destination_rules]

        graph = CollisionGraph(self.destination_rules)
        for i in range(len(self.destination_rules)):
            if resolved[i] is None:
                continue
            for j in range(i + 1, len(self.destination_rules)):
                if resolved[j] is None:
                    continue
                if not resolved[i].matches(resolved[j]):
                    continue
                if not exports_overlap(self.destination_rules[i], self.destination_rules[j]):
                    continue
                # 没有子集的规则作用于整个主机，和任何规则都冲突
                if subsets[i] and subsets[j] and not (subsets[i] & subsets[j]):
                    continue
                graph.add_edge(i, j)

        if graph.has_edges():
            logger.debug(f"发现重复的 DestinationRule 主机定义: {len(self.destination_rules)} 个规则参与比较")
        return graph.to_validations(DESTINATION_RULE_TYPE, "destinationrules.multimatch", "spec/host")

    def _resolve(self, destination_rule: IstioObject) -> Optional[Host]:
        raw_host = destination_rule.get_str("host")
        if not raw_host:
            return None
        return get_host(raw_host, destination_rule.namespace, destination_rule.cluster,
                        self.namespaces, self.identity_domain)

    @staticmethod
    def _subset_names(destination_rule: IstioObject) -> Set[str]:
        names = set()
        for subset in destination_rule.get_list("subsets") or []:
            name = as_str((as_dict(subset) or {}).get("name"))
            if name:
                names.add(name)
        return names
