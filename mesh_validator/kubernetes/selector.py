"""
标签选择器

按 Kubernetes selector 的等值语义匹配标签集合：
选择器中的每个键都必须以相同的值出现在目标标签中。空选择器匹配一切。
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional


@dataclass(frozen=True)
class LabelSelector:
    """等值标签选择器"""
    requirements: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_set(cls, labels: Optional[Mapping[str, str]]) -> 'LabelSelector':
        return cls(requirements=dict(labels or {}))

    def empty(self) -> bool:
        return not self.requirements

    def matches(self, labels: Optional[Mapping[str, str]]) -> bool:
        labels = labels or {}
        for key, value in self.requirements.items():
            if key not in labels or labels[key] != value:
                return False
        return True

    def __str__(self) -> str:
        return ",".join(f"{k}={v}" for k, v in sorted(self.requirements.items()))


def selector_matches(selector: Optional[Mapping[str, str]], labels: Optional[Mapping[str, str]]) -> bool:
    return LabelSelector.from_set(selector).matches(labels)
