"""
对象间冲突关系

多对象检查器把冲突记录为对象下标之间的无向边，再按连通分量把对象划分为冲突类。
同一冲突类中的每个对象都引用类内其它所有对象。
用下标而不是对象引用建边，结果中只保存值类型的 IstioValidationKey。
"""

from typing import Dict, List

from mesh_validator.kubernetes.istio_object import IstioObject
from mesh_validator.models.data_models import (
    IstioValidation,
    IstioValidationKey,
    IstioValidations,
    build_check
)


class CollisionGraph:
    """对象下标上的无向图，邻接表保持加边顺序"""

    def __init__(self, objects: List[IstioObject]):
        self.objects = objects
        self._edges: Dict[int, List[int]] = {}

    def add_edge(self, first: int, second: int):
        if first == second:
            return
        for a, b in ((first, second), (second, first)):
            neighbours = self._edges.setdefault(a, [])
            if b not in neighbours:
                neighbours.append(b)

    def neighbours(self, index: int) -> List[int]:
        return sorted(self._edges.get(index, []))

    def has_edges(self) -> bool:
        return bool(self._edges)

    def components(self) -> List[List[int]]:
        """
        大小至少为 2 的连通分量，分量内下标升序，分量按最小下标排序
        """
        seen = set()
        result: List[List[int]] = []
        for start in sorted(self._edges):
            if start in seen:
                continue
            seen.add(start)
            stack, members = [start], []
            while stack:
                current = stack.pop()
                members.append(current)
                for neighbour in self._edges.get(current, []):
                    if neighbour not in seen:
                        seen.add(neighbour)
                        stack.append(neighbour)
            if len(members) > 1:
                result.append(sorted(members))
        return result

    def to_validations(self, object_type: str, message_key: str, path: str) -> IstioValidations:
        """
        为每个冲突类中的对象生成一条检查结果，并引用同类的所有其它对象

        冲突本身不会让对象失效
        """
        validations = IstioValidations()
        for members in self.components():
            for index in members:
                obj = self.objects[index]
                key = IstioValidationKey(object_type, obj.namespace, obj.name)
                validation = validations.get(key)
                if validation is None:
                    validation = IstioValidation(
                        name=obj.name,
                        object_type=object_type,
                        namespace=obj.namespace,
                        valid=True,
                        checks=[build_check(message_key, path)],
                    )
                    validations[key] = validation
                for other_index in members:
                    if other_index == index:
                        continue
                    other = self.objects[other_index]
                    validation.add_reference(IstioValidationKey(object_type, other.namespace, other.name))
        return validations
