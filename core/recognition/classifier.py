# -*- coding: utf-8 -*-
"""
最近模板分类器

距离为四个方向特征图逐单元差的平方和，再加上按权重缩放的墨迹单元数差的平方，取平方根
"""

import math
import logging
from typing import Sequence, Tuple

import numpy as np

from config.settings import RecognizerParams
from core.recognition.shape_instance import ShapeInstance
from core.recognition.template import Template
from utils.performance import Timer


class Classifier:
    """
    最近模板分类器

    Args:
        params (RecognizerParams): 识别参数
    """

    def __init__(self, params: RecognizerParams):
        self.params = params
        self.logger = logging.getLogger(__name__)

    def distance(self, instance: ShapeInstance, template: Template) -> float:
        """
        计算实例与模板的距离

        Args:
            instance (ShapeInstance): 待识别实例
            template (Template): 模板

        Returns:
            float: 欧氏距离

        Raises:
            ValueError: 特征图尺寸不一致
        """
        instance_values = instance.features.values
        template_values = template.features.values
        if instance_values.shape != template_values.shape:
            raise ValueError(
                f"Feature map shape {instance_values.shape} does not match "
                f"template {template.shape_id} shape {template_values.shape}")

        directional = float(np.sum((template_values - instance_values) ** 2))
        ink = self.params.ink_count_weight * abs(instance.ink_count - template.avg_ink_count)
        return math.sqrt(directional + ink * ink)

    def find_nearest(self, instance: ShapeInstance,
                     templates: Sequence[Template]) -> Tuple[int, float]:
        """
        查找最近的模板

        距离相等时保留先出现的模板

        Returns:
            Tuple[int, float]: (形状ID, 距离)，模板列表为空时返回 (-1, inf)
        """
        closest_id = -1
        closest_distance = math.inf

        for template in templates:
            distance = self.distance(instance, template)
            if distance < closest_distance:
                closest_distance = distance
                closest_id = template.shape_id

        return closest_id, closest_distance

    def classify(self, instance: ShapeInstance, templates: Sequence[Template]) -> Tuple[int, float]:
        """
        识别实例并写入识别结果

        耗时只统计模板搜索，不含特征提取

        Args:
            instance (ShapeInstance): 待识别实例
            templates (Sequence[Template]): 模板列表

        Returns:
            Tuple[int, float]: (形状ID, 距离)
        """
        with Timer("recognize") as timer:
            shape_id, distance = self.find_nearest(instance, templates)

        instance.recognized_shape_id = shape_id
        instance.recognized_distance = distance
        instance.time_to_recognize = timer.elapsed_time

        if not templates:
            self.logger.warning("No templates available, instance left unrecognized")
        else:
            self.logger.debug(
                f"Recognized instance (actual {instance.actual_shape_id}) as {shape_id}, "
                f"distance {distance:.4f}")
        return shape_id, distance
