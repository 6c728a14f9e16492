# -*- coding: utf-8 -*-
"""
配置模块
"""

from .settings import (Config, ConfigError, RecognizerParams, SHAPE_LABELS,
                       describe_shape, default_config)

__all__ = [
    'Config',
    'ConfigError',
    'RecognizerParams',
    'SHAPE_LABELS',
    'describe_shape',
    'default_config'
]
