"""
校验服务

负责协调各类对象的检查器：为每个目标对象构造固定的检查器列表并运行，
再运行多对象检查器，最后把结果合并为按对象标识索引的校验集合。

单对象检查器之间没有数据依赖，可以并行运行；合并只在调用线程中按输入顺序进行，
因此串行和并行模式的输出完全一致。
"""

import os
import logging
import concurrent.futures
from typing import List, Optional, Tuple

from mesh_validator.checkers.base import Checker
from mesh_validator.checkers.destination_rules_checker import DestinationRulesChecker
from mesh_validator.checkers.virtual_services_checker import VirtualServicesChecker
from mesh_validator.config import GlobalConfig, get_config
from mesh_validator.kubernetes.istio_object import IstioObject
from mesh_validator.models.context import ValidationContext
from mesh_validator.models.data_models import IstioCheck, IstioValidations, single_validation

logger = logging.getLogger(__name__)

# (对象类型, 目标对象, 检查器列表)
ObjectTask = Tuple[str, IstioObject, List[Checker]]


def run_checkers(object_type: str, obj: IstioObject, checkers: List[Checker]) -> IstioValidations:
    """
    对单个对象依次运行检查器并合并结果

    对象最终有效性是所有检查器判断的与。单个检查器意外失败时记录日志并跳过，
    不中断整个校验过程
    """
    checks: List[IstioCheck] = []
    valid = True
    for checker in checkers:
        try:
            checker_checks, checker_valid = checker.check()
        except Exception as e:
            logger.error(f"{type(checker).__name__} 检查 {obj} 时出错: {e}", exc_info=True)
            continue
        checks.extend(checker_checks)
        valid = valid and checker_valid
    return single_validation(object_type, obj.namespace, obj.name, checks, valid)


class IstioValidationsService:
    """Istio 配置校验服务"""

    def __init__(
        self,
        config: Optional[GlobalConfig] = None,
        enable_parallel: Optional[bool] = None,
        max_workers: Optional[int] = None
    ):
        """
        初始化校验服务

        Args:
            config: 全局配置，默认使用配置单例
            enable_parallel: 是否并行运行单对象检查器，默认取配置
            max_workers: 最大工作线程数，None表示按CPU核心数计算
        """
        self.config = config or get_config()
        self.enable_parallel = self.config.enable_parallel if enable_parallel is None else enable_parallel
        self.max_workers = max_workers or self.config.max_workers or min(32, (os.cpu_count() or 4) + 4)

    def get_validations(self, context: ValidationContext) -> IstioValidations:
        """
        执行一次完整校验

        Returns:
            校验集合，每个目标对象都有一个条目
        """
        kind_checkers = [
            DestinationRulesChecker(
                context=context,
                app_label_name=self.config.app_label_name,
                identity_domain=self.config.identity_domain,
            ),
            VirtualServicesChecker(
                context=context,
                identity_domain=self.config.identity_domain,
            ),
        ]

        tasks: List[ObjectTask] = []
        for kind_checker in kind_checkers:
            for obj in kind_checker.targets():
                tasks.append((kind_checker.object_type, obj, kind_checker.object_checkers(obj)))

        logger.info(f"开始校验: {len(tasks)} 个对象, 命名空间={context.namespace or '全部'}")

        validations = IstioValidations()
        for result in self._run_tasks(tasks):
            validations.merge_validations(result)

        for kind_checker in kind_checkers:
            try:
                group_validations = kind_checker.group_checks()
            except Exception as e:
                logger.error(f"{type(kind_checker).__name__} 多对象检查出错: {e}", exc_info=True)
                continue
            validations.merge_validations(group_validations)

        summary = validations.summary()
        logger.info(
            f"✓ 校验完成: {summary['objectCount']} 个对象, {summary['invalidObjects']} 个无效, "
            f"{summary['errors']} 个错误, {summary['warnings']} 个警告"
        )
        return validations

    def _run_tasks(self, tasks: List[ObjectTask]) -> List[IstioValidations]:
        if not self.enable_parallel or len(tasks) < 2:
            return [run_checkers(*task) for task in tasks]

        logger.debug(f"并行运行单对象检查器, 最大工作线程: {self.max_workers}")
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            # map 按提交顺序返回结果，保证合并顺序稳定
            return list(executor.map(lambda task: run_checkers(*task), tasks))


def validate(context: ValidationContext, config: Optional[GlobalConfig] = None) -> IstioValidations:
    """使用默认配置执行一次校验"""
    return IstioValidationsService(config=config).get_validations(context)
