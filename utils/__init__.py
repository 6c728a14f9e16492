# -*- coding: utf-8 -*-
"""
工具模块

提供各种辅助工具和实用函数
包括几何与角度计算、日志、计时与可视化
"""

from .math_utils import MathUtils, GeometryUtils
from .logging_utils import setup_logging, LogManager, ContextLogger, ColoredFormatter, get_context_logger
from .performance import Timer, measure_time, timeit

__all__ = [
    # 数学工具
    'MathUtils',
    'GeometryUtils',

    # 日志工具
    'setup_logging',
    'LogManager',
    'ContextLogger',
    'ColoredFormatter',
    'get_context_logger',

    # 计时工具
    'Timer',
    'measure_time',
    'timeit',
]
