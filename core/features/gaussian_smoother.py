# -*- coding: utf-8 -*-
"""
高斯平滑器

固定3点核 {0.2248, 0.5504, 0.2248} 的一维（沿列内单元）与二维（可分离）平滑。
边界处缺失邻居的权重并入中心：一维为 {0.7752, 0.2248}，
二维角点、边缘行、边缘列与内部单元的权重和都为1。
"""

import logging

import numpy as np
from scipy import ndimage

from core.stroke_processing.preprocessor import SIDE_WEIGHT, CENTER_WEIGHT


KERNEL = np.array([SIDE_WEIGHT, CENTER_WEIGHT, SIDE_WEIGHT], dtype=np.float64)


class GaussianSmoother:
    """
    高斯平滑器

    输入数组的最后一维为列内单元（cell）方向，倒数第二维为列（column）方向。
    mode='nearest' 把越界邻居取为边界值本身，等价于把其权重并入中心。
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def smooth_columns(values: np.ndarray, iterations: int) -> np.ndarray:
        """
        一维平滑：每列沿单元方向独立平滑

        Args:
            values (np.ndarray): 形如 (..., columns, cells) 的数组
            iterations (int): 迭代次数，0 时原样返回

        Returns:
            np.ndarray: 平滑结果，不修改输入
        """
        if iterations <= 0:
            return values

        result = np.asarray(values, dtype=np.float64)
        for _ in range(iterations):
            result = ndimage.correlate1d(result, KERNEL, axis=-1, mode='nearest')
        return result

    @staticmethod
    def smooth_grid(values: np.ndarray, iterations: int) -> np.ndarray:
        """
        二维平滑：两个空间维度上的可分离核

        中心权重 0.5504²，边邻居 0.5504·0.2248，角邻居 0.2248²

        Args:
            values (np.ndarray): 形如 (..., rows, cols) 的数组
            iterations (int): 迭代次数，0 时原样返回

        Returns:
            np.ndarray: 平滑结果，不修改输入
        """
        if iterations <= 0:
            return values

        result = np.asarray(values, dtype=np.float64)
        for _ in range(iterations):
            result = ndimage.correlate1d(result, KERNEL, axis=-1, mode='nearest')
            result = ndimage.correlate1d(result, KERNEL, axis=-2, mode='nearest')
        return result

    def smooth(self, values: np.ndarray, iterations: int, two_dimensional: bool) -> np.ndarray:
        """按特征图类型选择一维或二维平滑"""
        if two_dimensional:
            smoothed = self.smooth_grid(values, iterations)
        else:
            smoothed = self.smooth_columns(values, iterations)
        self.logger.debug(
            f"Smoothed {values.shape} map ({'2-D' if two_dimensional else '1-D'}, {iterations} iterations)")
        return smoothed
