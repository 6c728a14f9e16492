# -*- coding: utf-8 -*-
"""
特征模块

方向特征提取与高斯平滑
"""

from .gaussian_smoother import GaussianSmoother, KERNEL
from .feature_extractor import (
    DIRECTIONS,
    FeatureStrategy,
    FeatureMaps,
    FeatureExtractor,
    ColumnFeatureExtractor,
    PixelGridFeatureExtractor,
    create_feature_extractor,
)

__all__ = [
    'GaussianSmoother',
    'KERNEL',
    'DIRECTIONS',
    'FeatureStrategy',
    'FeatureMaps',
    'FeatureExtractor',
    'ColumnFeatureExtractor',
    'PixelGridFeatureExtractor',
    'create_feature_extractor',
]
