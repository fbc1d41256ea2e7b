"""
VirtualService 检查器组合

单对象规则：路由权重与重复子集
多对象规则：单主机
"""

from dataclasses import dataclass
from typing import List

from mesh_validator.checkers.base import Checker, VIRTUAL_SERVICE_TYPE
from mesh_validator.checkers.virtualservices.route_checker import RouteChecker
from mesh_validator.checkers.virtualservices.single_host_checker import SingleHostChecker
from mesh_validator.models.context import ValidationContext
from mesh_validator.kubernetes.filters import visible_in_namespace
from mesh_validator.kubernetes.host import DEFAULT_IDENTITY_DOMAIN
from mesh_validator.kubernetes.istio_object import IstioObject
from mesh_validator.models.data_models import IstioValidations


@dataclass
class VirtualServicesChecker:
    context: ValidationContext
    identity_domain: str = DEFAULT_IDENTITY_DOMAIN

    object_type = VIRTUAL_SERVICE_TYPE

    def targets(self) -> List[IstioObject]:
        return self.context.target_virtual_services()

    def object_checkers(self, virtual_service: IstioObject) -> List[Checker]:
        return [RouteChecker(
            virtual_service=virtual_service,
            namespaces=self.context.all_namespaces(),
            identity_domain=self.identity_domain,
        )]

    def group_checks(self) -> IstioValidations:
        validations = IstioValidations()
        namespaces = self.context.all_namespaces()
        for namespace in self.context.target_namespaces():
            local = [vs for vs in self.context.virtual_services if vs.namespace == namespace]
            exported = [
                vs for vs in self.context.virtual_services
                if vs.namespace != namespace and visible_in_namespace(vs, namespace)
            ]
            checker = SingleHostChecker(
                namespace=namespace,
                virtual_services=local,
                exported_virtual_services=exported,
                namespaces=namespaces,
                identity_domain=self.identity_domain,
            )
            validations.merge_validations(checker.check(), unique_checks=True)
        return validations
