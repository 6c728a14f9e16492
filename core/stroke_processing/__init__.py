# -*- coding: utf-8 -*-
"""
笔画处理模块

笔迹文件加载与笔画预处理
"""

from .preprocessor import StrokePreprocessor, SIDE_WEIGHT, CENTER_WEIGHT
from .stroke_loader import StrokeFileLoader, StrokeFormatError, ShapeFileName, LoadedShape

__all__ = [
    'StrokePreprocessor',
    'SIDE_WEIGHT',
    'CENTER_WEIGHT',
    'StrokeFileLoader',
    'StrokeFormatError',
    'ShapeFileName',
    'LoadedShape',
]
