"""
全局配置管理
"""

import os
import json
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict, fields


class ConfigError(ValueError):
    """配置文件内容无效"""


@dataclass
class GlobalConfig:
    """全局配置类"""

    # 基础路径配置
    project_root: str = field(default_factory=lambda: os.path.dirname(os.path.dirname(__file__)))

    # 配置快照目录：<config_dir>/<资源类型>/<命名空间>/*.yaml
    config_dir: str = "istio_config"

    # 网格配置
    root_namespace: str = "istio-system"
    app_label_name: str = "app"
    version_label_name: str = "version"
    identity_domain: str = "svc.cluster.local"

    # 执行配置
    enable_parallel: bool = False
    max_workers: Optional[int] = None

    # Web配置
    web_port: int = 8080

    # 日志配置
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        """初始化后处理：转换相对路径为绝对路径"""
        self.config_dir = self._resolve_path(self.config_dir)

    def _resolve_path(self, path: str) -> str:
        """将相对路径转换为绝对路径"""
        if os.path.isabs(path):
            return path
        return os.path.join(self.project_root, path)

    @classmethod
    def from_file(cls, config_file: str) -> 'GlobalConfig':
        """从JSON配置文件加载配置"""
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_dict = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"配置文件不是合法的JSON: {config_file}: {e}") from e

        if not isinstance(config_dict, dict):
            raise ConfigError(f"配置文件顶层必须是对象: {config_file}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ConfigError(f"未知的配置项: {', '.join(unknown)}")
        return cls(**config_dict)

    def to_file(self, config_file: str):
        """保存配置到JSON文件"""
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(asdict(self), f, indent=2, ensure_ascii=False)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return asdict(self)


# 全局配置单例
_global_config: Optional[GlobalConfig] = None


def get_config() -> GlobalConfig:
    """获取全局配置单例"""
    global _global_config
    if _global_config is None:
        _global_config = GlobalConfig()
    return _global_config


def set_config(config: Optional[GlobalConfig]):
    """设置全局配置"""
    global _global_config
    _global_config = config


def load_config_from_file(config_file: str):
    """从文件加载全局配置"""
    config = GlobalConfig.from_file(config_file)
    set_config(config)
    return config
