# -*- coding: utf-8 -*-
"""
形状模板

每个形状类别一个模板：训练实例特征图的逐单元平均（乘以增益）再做高斯平滑
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

from config.settings import RecognizerParams
from core.features.feature_extractor import FeatureMaps
from core.features.gaussian_smoother import GaussianSmoother
from core.recognition.shape_instance import ShapeInstance


@dataclass(frozen=True)
class Template:
    """
    形状模板（构造后不可修改）

    Attributes:
        shape_id (int): 形状ID
        features (FeatureMaps): 平滑后的四方向特征图（只读数组）
        avg_ink_count (float): 训练实例墨迹单元数的平均值
        instance_count (int): 训练实例数
    """
    shape_id: int
    features: FeatureMaps
    avg_ink_count: float
    instance_count: int

    @property
    def values(self) -> np.ndarray:
        return self.features.values


class TemplateBuilder:
    """
    模板构建器

    Args:
        params (RecognizerParams): 识别参数
    """

    def __init__(self, params: RecognizerParams):
        self.params = params
        self.smoother = GaussianSmoother()
        self.logger = logging.getLogger(__name__)

    def build(self, shape_id: int, instances: Sequence[ShapeInstance]) -> Template:
        """
        由同一类别的训练实例构建模板

        Args:
            shape_id (int): 形状ID
            instances (Sequence[ShapeInstance]): 训练实例

        Returns:
            Template: 模板

        Raises:
            ValueError: 训练实例为空或特征图尺寸不一致
        """
        if not instances:
            raise ValueError(f"Cannot build template {shape_id} from zero training instances")

        first = instances[0].features
        total = np.zeros_like(first.values, dtype=np.float64)
        ink_total = 0

        for instance in instances:
            if instance.features.values.shape != total.shape:
                raise ValueError(
                    f"Feature map shape mismatch in template {shape_id}: "
                    f"{instance.features.values.shape} != {total.shape}")
            total += instance.features.values
            ink_total += instance.features.ink_count

        count = len(instances)
        averaged = total * (self.params.template_boost / count)
        smoothed = self.smoother.smooth(averaged, self.params.smoothing_iterations,
                                        first.two_dimensional)

        # 平滑迭代次数为0时 smooth 原样返回，这里总是使用独立副本
        features = FeatureMaps(np.array(smoothed, dtype=np.float64, copy=True),
                               ink_count=int(round(ink_total / count)),
                               two_dimensional=first.two_dimensional).freeze()

        self.logger.debug(f"Built template {shape_id} from {count} instances")
        return Template(shape_id=shape_id,
                        features=features,
                        avg_ink_count=ink_total / count,
                        instance_count=count)

    def build_all(self, instances_by_shape: Dict[int, List[ShapeInstance]]) -> List[Template]:
        """
        为每个类别构建模板

        Args:
            instances_by_shape (Dict[int, List[ShapeInstance]]): 形状ID到训练实例的映射

        Returns:
            List[Template]: 按形状ID排序的模板列表
        """
        return [self.build(shape_id, instances_by_shape[shape_id])
                for shape_id in sorted(instances_by_shape)]
