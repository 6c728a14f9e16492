# -*- coding: utf-8 -*-
"""
核心算法模块

笔迹形状识别：预处理、方向特征、模板训练、分类与交叉验证
"""

__version__ = '1.0.0'

# 导入主要模块
from .stroke_model import StrokePoint, Stroke, BoundingBox
from .stroke_processing import StrokePreprocessor, StrokeFileLoader, StrokeFormatError
from .features import FeatureStrategy, FeatureMaps, GaussianSmoother, create_feature_extractor
from .recognition import ShapeInstance, Template, TemplateBuilder, Classifier, Recognizer
from .evaluation import CrossValidator, CrossValidationResult

__all__ = [
    'StrokePoint',
    'Stroke',
    'BoundingBox',
    'StrokePreprocessor',
    'StrokeFileLoader',
    'StrokeFormatError',
    'FeatureStrategy',
    'FeatureMaps',
    'GaussianSmoother',
    'create_feature_extractor',
    'ShapeInstance',
    'Template',
    'TemplateBuilder',
    'Classifier',
    'Recognizer',
    'CrossValidator',
    'CrossValidationResult',
]
