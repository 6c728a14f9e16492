# -*- coding: utf-8 -*-
"""
配置设置模块

定义笔迹形状识别器的各种参数和配置
"""

import os
import math
import yaml
import logging
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional


class ConfigError(ValueError):
    """配置参数不合法"""


# 形状ID到可读名称的静态映射表
SHAPE_LABELS = {
    1: "Curved arrow",
    2: "Straight arrow",
    3: "+",
    4: "=",
    5: "-",
    6: "1/2",
    7: "X",
    8: "Y",
    9: "F",
    10: "G",
    11: "Sigma",
    12: "E",
    13: "Positive clockwise",
    14: "Square",
    15: "?",
    16: "Star (small)*",
    17: "Star (medium)*",
    18: "Star (large)*",
    19: "b*",
    20: "d*",
    21: "p*",
    22: "W (rotated 90)*",
    23: "W (rotated 0)*",
    24: "W (rotated 45)*",
    25: "Square (v1)*",
    26: "Square (v2)*",
    27: "Square (v3, multi-stroke)*",
}


def describe_shape(shape_id: int) -> str:
    """
    获取形状ID对应的描述

    Args:
        shape_id (int): 形状ID

    Returns:
        str: 形如 "[3]: +" 的描述，未知ID返回 "unknown"
    """
    label = SHAPE_LABELS.get(shape_id)
    if label is None:
        return "unknown"
    return f"[{shape_id}]: {label}"


@dataclass(frozen=True)
class RecognizerParams:
    """
    识别流程参数

    训练、识别与交叉验证都显式接收该结构，不依赖任何全局状态
    """
    strategy: str = 'smoothed_column'
    angle_smooth_count: int = 3
    column_count: int = 24
    column_cell_count: int = 24
    grid_side: int = 24
    intersection_gaussian_width: int = 5
    template_boost: float = 1.0
    ink_count_weight: float = 0.0
    recognition_distance_threshold: float = math.inf
    end_point_throw_away_count: int = 1
    min_point_count: int = 4

    def __post_init__(self):
        if self.strategy not in ('continuous_column', 'smoothed_column', 'pixel_grid'):
            raise ConfigError(f"Unknown feature strategy: {self.strategy}")

        for name, value in asdict(self).items():
            if name == 'strategy':
                continue
            if value is None or (isinstance(value, float) and math.isnan(value)) or value < 0:
                raise ConfigError(f"Parameter '{name}' must be >= 0, got {value!r}")

        for name in ('column_count', 'column_cell_count', 'grid_side'):
            if getattr(self, name) < 1:
                raise ConfigError(f"Parameter '{name}' must be >= 1")

        if self.intersection_gaussian_width < 1:
            raise ConfigError("Parameter 'intersection_gaussian_width' must be >= 1")

    @property
    def smoothing_iterations(self) -> int:
        """由高斯宽度推导的平滑迭代次数"""
        return (self.intersection_gaussian_width - 1) // 2


class Config:
    """
    配置管理类

    管理算法的所有参数配置，支持从文件加载和默认值
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        初始化配置

        Args:
            config_path (str, optional): 配置文件路径
        """
        self.logger = logging.getLogger(__name__)

        # 设置默认配置
        self._set_default_config()

        # 如果提供了配置文件路径，则加载配置
        if config_path and os.path.exists(config_path):
            self._load_config_file(config_path)

    def _set_default_config(self):
        """
        设置默认配置参数
        """
        # 笔画预处理参数
        self.preprocessing = {
            'angle_smooth_count': 3,          # 切线角平滑迭代次数
            'min_point_count': 4,             # 笔画最少点数
            'end_point_throw_away_count': 1,  # 笔画两端丢弃的点数
        }

        # 特征提取参数
        self.features = {
            'strategy': 'smoothed_column',    # continuous_column / smoothed_column / pixel_grid
            'column_count': 24,               # 列数
            'column_cell_count': 24,          # 每列单元数
            'grid_side': 24,                  # 像素网格边长
        }

        # 模板参数
        self.templates = {
            'intersection_gaussian_width': 5,  # 高斯宽度，平滑次数为 (width-1)/2
            'template_boost': 1.0,             # 模板增益
        }

        # 识别参数
        self.recognition = {
            'ink_count_weight': 0.0,                       # 墨迹像素数项权重
            'recognition_distance_threshold': math.inf,    # 接受识别结果的距离阈值
        }

        # 交叉验证参数
        self.cross_validation = {
            'max_workers': 1,         # 并行线程数
            'show_progress': False,   # 显示进度条
        }

        # 日志参数
        self.logging = {
            'log_dir': 'logs',
            'app_name': 'shape_recognizer',
            'console_level': 'INFO',
            'file_level': 'DEBUG',
            'use_colors': True,
            'use_json': False,
        }

    def _load_config_file(self, config_path: str):
        """
        从YAML文件加载配置

        Args:
            config_path (str): 配置文件路径
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config file {config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

        self._update_config(config_data)
        self.logger.info(f"Config loaded: {config_path}")

    def _update_config(self, config_data: Dict[str, Any]):
        """
        更新配置数据

        Args:
            config_data (dict): 新的配置数据
        """
        for section, values in config_data.items():
            if hasattr(self, section) and isinstance(getattr(self, section), dict):
                getattr(self, section).update(values)
            else:
                setattr(self, section, values)

    def get(self, section: str, key: str = None, default=None):
        """
        获取配置值

        Args:
            section (str): 配置段名
            key (str, optional): 配置键名
            default: 默认值

        Returns:
            配置值
        """
        if not hasattr(self, section):
            return default

        section_config = getattr(self, section)

        if key is None:
            return section_config

        if isinstance(section_config, dict):
            return section_config.get(key, default)
        else:
            return default

    def set(self, section: str, key: str, value):
        """
        设置配置值

        Args:
            section (str): 配置段名
            key (str): 配置键名
            value: 配置值
        """
        if not hasattr(self, section):
            setattr(self, section, {})

        section_config = getattr(self, section)
        if isinstance(section_config, dict):
            section_config[key] = value
        else:
            setattr(self, section, {key: value})

    def to_params(self) -> RecognizerParams:
        """
        生成经过校验的识别参数

        Returns:
            RecognizerParams: 识别参数

        Raises:
            ConfigError: 参数非法
        """
        try:
            return RecognizerParams(
                strategy=str(self.features['strategy']),
                angle_smooth_count=int(self.preprocessing['angle_smooth_count']),
                column_count=int(self.features['column_count']),
                column_cell_count=int(self.features['column_cell_count']),
                grid_side=int(self.features['grid_side']),
                intersection_gaussian_width=int(self.templates['intersection_gaussian_width']),
                template_boost=float(self.templates['template_boost']),
                ink_count_weight=float(self.recognition['ink_count_weight']),
                recognition_distance_threshold=float(self.recognition['recognition_distance_threshold']),
                end_point_throw_away_count=int(self.preprocessing['end_point_throw_away_count']),
                min_point_count=int(self.preprocessing['min_point_count']),
            )
        except (KeyError, TypeError, ValueError) as e:
            if isinstance(e, ConfigError):
                raise
            raise ConfigError(f"Invalid recognizer configuration: {e}") from e

    def save_config(self, output_path: str):
        """
        保存配置到文件

        Args:
            output_path (str): 输出文件路径
        """
        config_data = {
            'preprocessing': self.preprocessing,
            'features': self.features,
            'templates': self.templates,
            'recognition': self.recognition,
            'cross_validation': self.cross_validation,
            'logging': self.logging,
        }

        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f, default_flow_style=False,
                      allow_unicode=True, indent=2)
        self.logger.info(f"Config saved: {output_path}")

    def __str__(self):
        """
        返回配置的字符串表示
        """
        config_str = "Configuration Settings:\n"
        for attr_name in ('preprocessing', 'features', 'templates',
                          'recognition', 'cross_validation', 'logging'):
            attr_value = getattr(self, attr_name)
            config_str += f"\n{attr_name}:\n"
            for key, value in attr_value.items():
                config_str += f"  {key}: {value}\n"
        return config_str


# 创建默认配置实例
default_config = Config()
