"""
DestinationRule 检查器组合

单对象规则：网格级 mTLS、命名空间级 mTLS、目标存在性
多对象规则：多重匹配
"""

from dataclasses import dataclass
from typing import List

from mesh_validator.checkers.base import Checker, DESTINATION_RULE_TYPE
from mesh_validator.checkers.destinationrules.meshwide_mtls_checker import MeshWideMTLSChecker
from mesh_validator.checkers.destinationrules.namespacewide_mtls_checker import NamespaceWideMTLSChecker
from mesh_validator.checkers.destinationrules.no_dest_checker import NoDestinationChecker
from mesh_validator.checkers.destinationrules.multi_match_checker import MultiMatchChecker
from mesh_validator.models.context import ValidationContext
from mesh_validator.kubernetes.filters import visible_in_namespace
from mesh_validator.kubernetes.host import DEFAULT_IDENTITY_DOMAIN
from mesh_validator.kubernetes.istio_object import IstioObject
from mesh_validator.models.data_models import IstioValidations


@dataclass
class DestinationRulesChecker:
    context: ValidationContext
    app_label_name: str = "app"
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN

    object_type = DESTINATION_RULE_TYPE

    def targets(self) -> List[IstioObject]:
        return self.context.target_destination_rules()

    def object_checkers(self, destination_rule: IstioObject) -> List[Checker]:
        """单个 DestinationRule 需要运行的检查器，顺序固定"""
        namespaces = self.context.all_namespaces()
        return [
            MeshWideMTLSChecker(
                destination_rule=destination_rule,
                mtls_details=self.context.mtls_details,
                identity_domain=self.identity_domain,
            ),
            NamespaceWideMTLSChecker(
                destination_rule=destination_rule,
                mtls_details=self.context.mtls_details,
                identity_domain=self.identity_domain,
            ),
            NoDestinationChecker(
                destination_rule=destination_rule,
                namespaces=namespaces,
                workloads=self.context.workloads,
                services=self.context.services,
                virtual_services=self.context.virtual_services,
                service_entries=self.context.service_entries,
                registry_status=self.context.registry_status,
                app_label_name=self.app_label_name,
                identity_domain=self.identity_domain,
            ),
        ]

    def group_checks(self) -> IstioValidations:
        """按命名空间运行多重匹配检查，同一对象在多个命名空间被报告时只保留一条"""
        validations = IstioValidations()
        namespaces = self.context.all_namespaces()
        for namespace in self.context.target_namespaces():
            visible = [dr for dr in self.context.destination_rules if visible_in_namespace(dr, namespace)]
            checker = MultiMatchChecker(
                destination_rules=visible,
                namespaces=namespaces,
                identity_domain=self.identity_domain,
            )
            validations.merge_validations(checker.check(), unique_checks=True)
        return validations
