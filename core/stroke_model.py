#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
笔迹建模核心模块
定义笔迹点、包围盒与笔画的基础数据结构
"""

import math
from dataclasses import dataclass, field
from typing import List, Tuple, Iterable

from utils.math_utils import GeometryUtils


@dataclass
class StrokePoint:
    """
    笔迹点

    angle 由预处理计算得到，计算前为 NaN
    """
    x: float
    y: float
    timestamp: float = 0.0
    angle: float = math.nan

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def copy(self) -> 'StrokePoint':
        return StrokePoint(self.x, self.y, self.timestamp, self.angle)


@dataclass(frozen=True)
class BoundingBox:
    """轴对齐包围盒"""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def union(self, other: 'BoundingBox') -> 'BoundingBox':
        """合并两个包围盒"""
        return BoundingBox(min(self.min_x, other.min_x), min(self.min_y, other.min_y),
                           max(self.max_x, other.max_x), max(self.max_y, other.max_y))

    @classmethod
    def enclosing(cls, boxes: Iterable['BoundingBox']) -> 'BoundingBox':
        """
        计算包含所有给定包围盒的最小包围盒

        Raises:
            ValueError: 没有给定任何包围盒
        """
        result = None
        for box in boxes:
            result = box if result is None else result.union(box)
        if result is None:
            raise ValueError("Cannot build a bounding box from an empty collection")
        return result


@dataclass
class Stroke:
    """
    笔画

    一次落笔到抬笔之间的有序点序列
    """
    points: List[StrokePoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    @property
    def positions(self) -> List[Tuple[float, float]]:
        return [p.position for p in self.points]

    @property
    def path_length(self) -> float:
        """折线长度"""
        return GeometryUtils.path_length(self.positions)

    @property
    def bounding_box(self) -> BoundingBox:
        """包围盒，空笔画返回零尺寸包围盒"""
        return BoundingBox(*GeometryUtils.calculate_bounding_box(self.positions))

    @property
    def centroid(self) -> Tuple[float, float]:
        """各点坐标的平均值"""
        return GeometryUtils.calculate_centroid(self.positions)

    def copy(self) -> 'Stroke':
        """深拷贝"""
        return Stroke([p.copy() for p in self.points])
