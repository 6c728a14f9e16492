# -*- coding: utf-8 -*-
"""
笔画预处理器

去除重复点、计算并平滑切线角、归一化与旋转笔画集合
所有操作都返回新的笔画，不修改输入
"""

import math
import logging
from typing import List, Sequence

from core.stroke_model import Stroke, StrokePoint, BoundingBox
from utils.math_utils import MathUtils, GeometryUtils


# 3点高斯核：两侧权重与中心权重
SIDE_WEIGHT = 0.2248
CENTER_WEIGHT = 0.5504


class StrokePreprocessor:
    """
    笔画预处理器

    Args:
        angle_smooth_count (int): 切线角平滑迭代次数
    """

    def __init__(self, angle_smooth_count: int = 3):
        if angle_smooth_count < 0:
            raise ValueError(f"angle_smooth_count must be >= 0, got {angle_smooth_count}")
        self.angle_smooth_count = angle_smooth_count
        self.logger = logging.getLogger(__name__)

    def prepare(self, stroke: Stroke) -> Stroke:
        """
        完整的单笔画预处理：去重、计算角度、平滑角度

        Args:
            stroke (Stroke): 原始笔画

        Returns:
            Stroke: 处理后的新笔画
        """
        prepared = self.remove_duplicate_points(stroke)
        prepared = self.compute_angles(prepared)
        return self.smooth_angles(prepared, self.angle_smooth_count)

    @staticmethod
    def remove_duplicate_points(stroke: Stroke) -> Stroke:
        """
        去除坐标与前一点相同的连续点

        Args:
            stroke (Stroke): 输入笔画

        Returns:
            Stroke: 不含连续重复点的新笔画
        """
        points = []
        for point in stroke.points:
            if points and points[-1].x == point.x and points[-1].y == point.y:
                continue
            points.append(point.copy())
        return Stroke(points)

    @staticmethod
    def compute_angles(stroke: Stroke) -> Stroke:
        """
        计算每个点的切线角

        内部点使用前后两个邻点，端点使用唯一的邻点；结果位于 [0, π)

        Args:
            stroke (Stroke): 输入笔画

        Returns:
            Stroke: 带角度的新笔画
        """
        result = stroke.copy()
        points = result.points
        count = len(points)

        if count == 1:
            points[0].angle = 0.0
            return result

        for i, point in enumerate(points):
            before = points[max(i - 1, 0)]
            after = points[min(i + 1, count - 1)]
            point.angle = GeometryUtils.orientation_angle(before.position, after.position)

        return result

    @staticmethod
    def smooth_angles(stroke: Stroke, iterations: int) -> Stroke:
        """
        用3点高斯核平滑切线角

        每次迭代都基于上一轮的角度计算，端点使用2点核。
        角度沿较短弧混合，NaN 按 0 处理。

        Args:
            stroke (Stroke): 已计算角度的笔画
            iterations (int): 迭代次数

        Returns:
            Stroke: 平滑后的新笔画
        """
        result = stroke.copy()
        points = result.points
        count = len(points)

        for point in points:
            if math.isnan(point.angle):
                point.angle = 0.0

        if count < 2:
            return result

        for _ in range(iterations):
            angles = [p.angle for p in points]
            smoothed = []
            for i, angle in enumerate(angles):
                if i == 0:
                    neighbors = (angles[1],)
                elif i == count - 1:
                    neighbors = (angles[-2],)
                else:
                    neighbors = (angles[i - 1], angles[i + 1])
                smoothed.append(MathUtils.weighted_angle_average(angle, neighbors, SIDE_WEIGHT))

            for point, angle in zip(points, smoothed):
                point.angle = angle

        return result

    @staticmethod
    def aggregate_bounding_box(strokes: Sequence[Stroke]) -> BoundingBox:
        """笔画集合的整体包围盒"""
        return BoundingBox.enclosing(stroke.bounding_box for stroke in strokes if len(stroke) > 0)

    @staticmethod
    def normalize(strokes: Sequence[Stroke]) -> List[Stroke]:
        """
        按整体包围盒等比归一化

        较长的一边映射到 [0, 1]，较短的一边在 [0, 1] 内居中。
        包围盒在某一方向上退化为零时，该方向的坐标都映射到 0.5。

        Args:
            strokes (Sequence[Stroke]): 笔画集合

        Returns:
            List[Stroke]: 归一化后的新笔画集合
        """
        box = StrokePreprocessor.aggregate_bounding_box(strokes)
        width = box.width
        height = box.height

        if width == 0 and height == 0:
            normalized = []
            for stroke in strokes:
                copy = stroke.copy()
                for point in copy.points:
                    point.x = 0.5
                    point.y = 0.5
                normalized.append(copy)
            return normalized

        if width > height:
            scale = 1.0 / width
            x_offset = 0.0
            y_offset = 0.5 * (width - height)
        else:
            scale = 1.0 / height
            x_offset = 0.5 * (height - width)
            y_offset = 0.0

        normalized = []
        for stroke in strokes:
            copy = stroke.copy()
            for point in copy.points:
                # 浮点误差可能略微越界
                point.x = min(max((point.x - box.min_x + x_offset) * scale, 0.0), 1.0)
                point.y = min(max((point.y - box.min_y + y_offset) * scale, 0.0), 1.0)
            normalized.append(copy)

        return normalized

    @staticmethod
    def rotate(strokes: Sequence[Stroke], rotation: float) -> List[Stroke]:
        """
        绕按点数加权的整体质心旋转笔画集合

        每个点的角度同时加上旋转量

        Args:
            strokes (Sequence[Stroke]): 笔画集合
            rotation (float): 旋转角度（弧度）

        Returns:
            List[Stroke]: 旋转后的新笔画集合
        """
        center = GeometryUtils.weighted_centroid(
            [stroke.centroid for stroke in strokes],
            [len(stroke) for stroke in strokes])

        rotated = []
        for stroke in strokes:
            points = []
            for point in stroke.points:
                x, y = MathUtils.rotate_point(point.position, center, rotation)
                points.append(StrokePoint(x, y, point.timestamp, point.angle + rotation))
            rotated.append(Stroke(points))

        return rotated
