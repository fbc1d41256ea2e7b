"""
配置检查器

单对象检查器返回 (检查结果列表, 是否有效)，多对象检查器返回按对象标识索引的校验集合
"""

from mesh_validator.checkers.base import Checker, GroupChecker, DESTINATION_RULE_TYPE, VIRTUAL_SERVICE_TYPE
from mesh_validator.checkers.destination_rules_checker import DestinationRulesChecker
from mesh_validator.checkers.virtual_services_checker import VirtualServicesChecker

__all__ = [
    "Checker",
    "GroupChecker",
    "DESTINATION_RULE_TYPE",
    "VIRTUAL_SERVICE_TYPE",
    "DestinationRulesChecker",
    "VirtualServicesChecker"
]
