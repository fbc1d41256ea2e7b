"""
检查器基类

单对象检查器只持有自己需要的输入，check() 返回 (检查结果列表, 对象是否有效)。
返回的有效性只代表本检查器对目标对象的判断，对象最终有效性由聚合器对所有检查器取与得到。

多对象检查器（GroupChecker）一次检查一组对象，直接返回按对象标识索引的校验集合，
用于需要互相引用的场景（例如多个 VirtualService 声明同一主机）。
"""

from abc import ABC, abstractmethod
from typing import List, Tuple

from mesh_validator.models.data_models import IstioCheck, IstioValidations

DESTINATION_RULE_TYPE = "destinationrule"
VIRTUAL_SERVICE_TYPE = "virtualservice"


class Checker(ABC):
    """单对象检查器"""

    @abstractmethod
    def check(self) -> Tuple[List[IstioCheck], bool]:
        """
        检查目标对象

        Returns:
            (检查结果列表, 目标对象是否有效)
        """
        pass


class GroupChecker(ABC):
    """多对象检查器"""

    @abstractmethod
    def check(self) -> IstioValidations:
        """
        检查一组对象

        Returns:
            涉及的对象的校验集合，未涉及的对象不出现在结果中
        """
        pass
