# -*- coding: utf-8 -*-
"""
数学工具

提供几何计算与角度计算功能
包括距离、包围盒、质心、旋转以及方向角的差值与加权平均
"""

import math
from typing import List, Tuple, Sequence

import numpy as np


TWO_PI = 2.0 * math.pi
HALF_PI = 0.5 * math.pi
ONE_QUARTER_PI = 0.25 * math.pi
THREE_QUARTERS_PI = 0.75 * math.pi


class MathUtils:
    """
    数学工具类

    提供角度相关的基础计算
    """

    @staticmethod
    def wrap_angle(angle: float) -> float:
        """
        将角度规范到 [0, 2π)

        Args:
            angle (float): 角度（弧度）

        Returns:
            float: 规范后的角度
        """
        wrapped = math.fmod(angle, TWO_PI)
        if wrapped < 0:
            wrapped += TWO_PI
        # fmod 对极小的负数可能得到 2π
        if wrapped >= TWO_PI:
            wrapped -= TWO_PI
        return wrapped

    @staticmethod
    def signed_angle_difference(from_angle: float, to_angle: float) -> float:
        """
        沿较短弧计算从 from_angle 到 to_angle 的有向角差

        Args:
            from_angle (float): 起始角度（弧度）
            to_angle (float): 目标角度（弧度）

        Returns:
            float: 位于 (-π, π] 的角差
        """
        delta = MathUtils.wrap_angle(to_angle - from_angle)
        if delta > math.pi:
            delta -= TWO_PI
        return delta

    @staticmethod
    def angle_or_opposite_spread(angle1, angle2):
        """
        计算两个方向（不区分正反）之间的最小夹角

        angle 与 angle+π 视为同一方向，支持标量与 numpy 数组

        Returns:
            位于 [0, π/2] 的夹角
        """
        delta = np.mod(np.subtract(angle2, angle1), math.pi)
        return np.minimum(delta, math.pi - delta)

    @staticmethod
    def directional_intensity(angles, reference: float):
        """
        计算方向强度 max(0, (π/4 - spread) / (π/4))

        Args:
            angles: 角度（标量或数组）
            reference (float): 参考方向

        Returns:
            位于 [0, 1] 的强度
        """
        spread = MathUtils.angle_or_opposite_spread(reference, angles)
        return np.maximum(0.0, (ONE_QUARTER_PI - spread) / ONE_QUARTER_PI)

    @staticmethod
    def weighted_angle_average(center_angle: float, neighbor_angles: Sequence[float],
                               neighbor_weight: float) -> float:
        """
        沿较短弧对角度做加权平均

        每个邻居角度的权重为 neighbor_weight，其余权重归中心角度

        Args:
            center_angle (float): 中心角度（弧度）
            neighbor_angles (Sequence[float]): 邻居角度
            neighbor_weight (float): 单个邻居的权重

        Returns:
            float: 位于 [0, 2π) 的平均角度
        """
        offset = 0.0
        for angle in neighbor_angles:
            offset += neighbor_weight * MathUtils.signed_angle_difference(center_angle, angle)
        return MathUtils.wrap_angle(center_angle + offset)

    @staticmethod
    def rotate_point(point: Tuple[float, float], center: Tuple[float, float],
                     angle: float) -> Tuple[float, float]:
        """
        绕中心点旋转点

        Args:
            point (Tuple[float, float]): 待旋转的点
            center (Tuple[float, float]): 旋转中心
            angle (float): 旋转角度（弧度）

        Returns:
            Tuple[float, float]: 旋转后的点
        """
        # 平移到原点
        x = point[0] - center[0]
        y = point[1] - center[1]

        # 旋转
        cos_angle = math.cos(angle)
        sin_angle = math.sin(angle)

        new_x = x * cos_angle - y * sin_angle
        new_y = x * sin_angle + y * cos_angle

        # 平移回原位置
        return (new_x + center[0], new_y + center[1])


class GeometryUtils:
    """
    几何工具类

    提供点集的几何计算功能
    """

    @staticmethod
    def distance(p1: Tuple[float, float], p2: Tuple[float, float]) -> float:
        """两点间欧氏距离"""
        return math.hypot(p2[0] - p1[0], p2[1] - p1[1])

    @staticmethod
    def orientation_angle(p1: Tuple[float, float], p2: Tuple[float, float]) -> float:
        """
        计算从 p1 指向 p2 的方向角，并折算到 [0, π)

        Args:
            p1 (Tuple[float, float]): 前一个点
            p2 (Tuple[float, float]): 后一个点

        Returns:
            float: 方向角（弧度）
        """
        angle = math.atan2(p2[1] - p1[1], p2[0] - p1[0])
        if angle < 0:
            angle += math.pi
        # atan2 返回 -0.0 或 π 时统一到区间内
        if angle >= math.pi:
            angle -= math.pi
        return angle

    @staticmethod
    def path_length(points: List[Tuple[float, float]]) -> float:
        """计算折线长度"""
        if len(points) < 2:
            return 0.0
        coords = np.asarray(points, dtype=np.float64)
        return float(np.sum(np.hypot(*np.diff(coords, axis=0).T)))

    @staticmethod
    def calculate_bounding_box(points: List[Tuple[float, float]]) -> Tuple[float, float, float, float]:
        """
        计算点集的边界框

        Args:
            points (List[Tuple[float, float]]): 点列表

        Returns:
            Tuple[float, float, float, float]: (min_x, min_y, max_x, max_y)
        """
        if not points:
            return (0.0, 0.0, 0.0, 0.0)

        coords = np.asarray(points, dtype=np.float64)
        min_x, min_y = coords.min(axis=0)
        max_x, max_y = coords.max(axis=0)
        return (float(min_x), float(min_y), float(max_x), float(max_y))

    @staticmethod
    def calculate_centroid(points: List[Tuple[float, float]]) -> Tuple[float, float]:
        """
        计算点集质心（各点等权平均）

        Args:
            points (List[Tuple[float, float]]): 点列表

        Returns:
            Tuple[float, float]: 质心坐标
        """
        if not points:
            return (0.0, 0.0)

        coords = np.asarray(points, dtype=np.float64)
        cx, cy = coords.mean(axis=0)
        return (float(cx), float(cy))

    @staticmethod
    def weighted_centroid(centroids: List[Tuple[float, float]],
                          weights: List[int]) -> Tuple[float, float]:
        """
        按权重（通常为点数）合并多个质心

        Args:
            centroids (List[Tuple[float, float]]): 各部分质心
            weights (List[int]): 各部分权重

        Returns:
            Tuple[float, float]: 合并后的质心
        """
        total = float(sum(weights))
        if total == 0:
            return (0.0, 0.0)

        cx = sum(c[0] * w for c, w in zip(centroids, weights)) / total
        cy = sum(c[1] * w for c, w in zip(centroids, weights)) / total
        return (cx, cy)
