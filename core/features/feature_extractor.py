# -*- coding: utf-8 -*-
"""
方向特征提取器

把预处理后的笔画转换为 0°/45°/90°/135° 四个方向的强度特征图。
三种策略共用同一流程，由 FeatureStrategy 选择：

    continuous_column  列网格，相邻点之间按半个单元的步长补点，实例图不平滑
    smoothed_column    列网格，不补点；只有模板用一维高斯核平滑，实例图保留每个单元的最大强度
    pixel_grid         正方形像素网格，一次遍历得到四个方向，另有墨迹像素数特征
"""

import math
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

import numpy as np

from config.settings import RecognizerParams
from core.stroke_model import Stroke
from core.stroke_processing.preprocessor import StrokePreprocessor
from utils.math_utils import MathUtils, GeometryUtils, ONE_QUARTER_PI, HALF_PI, THREE_QUARTERS_PI


DIRECTIONS = (0, 45, 90, 135)


class FeatureStrategy(Enum):
    """特征提取策略"""
    CONTINUOUS_COLUMN = 'continuous_column'
    SMOOTHED_COLUMN = 'smoothed_column'
    PIXEL_GRID = 'pixel_grid'


@dataclass
class FeatureMaps:
    """
    四方向特征图

    Attributes:
        values (np.ndarray): 形如 (4, rows, cols) 的强度数组，方向顺序为 0°/45°/90°/135°
        ink_count (int): 至少有一个采样点落入的单元数
        two_dimensional (bool): 是否按二维网格平滑（像素网格为 True）
    """
    values: np.ndarray
    ink_count: int = 0
    two_dimensional: bool = False

    @classmethod
    def zeros(cls, rows: int, cols: int, two_dimensional: bool = False) -> 'FeatureMaps':
        return cls(np.zeros((len(DIRECTIONS), rows, cols), dtype=np.float64), 0, two_dimensional)

    @property
    def grid_shape(self) -> Tuple[int, int]:
        return self.values.shape[1:]

    def direction(self, degrees: int) -> np.ndarray:
        """获取指定方向的特征图"""
        if degrees not in DIRECTIONS:
            raise ValueError(f"Unknown direction: {degrees}")
        return self.values[DIRECTIONS.index(degrees)]

    def freeze(self) -> 'FeatureMaps':
        """将数组设为只读"""
        self.values.setflags(write=False)
        return self

    def copy(self) -> 'FeatureMaps':
        return FeatureMaps(self.values.copy(), self.ink_count, self.two_dimensional)


class FeatureExtractor:
    """
    特征提取器基类

    Args:
        params (RecognizerParams): 识别参数
    """

    strategy = None

    def __init__(self, params: RecognizerParams):
        self.params = params
        self.logger = logging.getLogger(__name__)

    def extract(self, strokes: Sequence[Stroke]) -> FeatureMaps:
        """
        提取特征图

        Args:
            strokes (Sequence[Stroke]): 已计算角度的笔画（不会被修改）

        Returns:
            FeatureMaps: 特征图
        """
        raise NotImplementedError

    def _collect_samples(self, strokes: Sequence[Stroke],
                         step: float = 0.0) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        收集参与计算的采样点

        每个笔画两端各丢弃 end_point_throw_away_count 个点。
        step > 0 时在相邻点之间按不超过 step 的间距插值补点，补点沿用线段起点的角度。

        Returns:
            Tuple[np.ndarray, np.ndarray, np.ndarray]: x、y 与角度数组
        """
        throw = self.params.end_point_throw_away_count
        xs, ys, angles = [], [], []

        for stroke in strokes:
            points = stroke.points
            stop = len(points) - throw
            for i in range(throw, stop):
                point = points[i]
                xs.append(point.x)
                ys.append(point.y)
                angles.append(point.angle)

                if step > 0 and i + 1 < stop:
                    following = points[i + 1]
                    pieces = int(math.ceil(
                        GeometryUtils.distance(point.position, following.position) / step))
                    for k in range(1, pieces):
                        t = k / pieces
                        xs.append(point.x + t * (following.x - point.x))
                        ys.append(point.y + t * (following.y - point.y))
                        angles.append(point.angle)

        return (np.asarray(xs, dtype=np.float64),
                np.asarray(ys, dtype=np.float64),
                np.nan_to_num(np.asarray(angles, dtype=np.float64)))

    @staticmethod
    def _cell_index(coordinates: np.ndarray, count: int) -> np.ndarray:
        """坐标映射到单元下标，并限制在网格内"""
        indices = np.floor(coordinates * count).astype(np.intp)
        return np.clip(indices, 0, count - 1)


class ColumnFeatureExtractor(FeatureExtractor):
    """
    列网格特征提取器

    0°/90° 图来自归一化后的笔画，45°/135° 图来自旋转 π/4 后重新归一化的笔画。
    竖直方向的图使用旋转 90° 的坐标系：列 = (1 - y)·C，单元 = x·K。

    Args:
        params (RecognizerParams): 识别参数
        continuous (bool): 是否在相邻点之间补点
    """

    def __init__(self, params: RecognizerParams, continuous: bool = False):
        super().__init__(params)
        self.continuous = continuous
        self.strategy = (FeatureStrategy.CONTINUOUS_COLUMN if continuous
                         else FeatureStrategy.SMOOTHED_COLUMN)

    @property
    def sample_step(self) -> float:
        """补点间距：半个单元"""
        if not self.continuous:
            return 0.0
        cell_size = min(1.0 / self.params.column_count, 1.0 / self.params.column_cell_count)
        return 0.5 * cell_size

    def extract(self, strokes: Sequence[Stroke]) -> FeatureMaps:
        columns = self.params.column_count
        cells = self.params.column_cell_count
        maps = FeatureMaps.zeros(columns, cells, two_dimensional=False)
        visited = np.zeros((columns, cells), dtype=bool)

        strokes0 = StrokePreprocessor.normalize(strokes)
        strokes45 = StrokePreprocessor.normalize(StrokePreprocessor.rotate(strokes0, ONE_QUARTER_PI))

        self._fill_horizontal_and_vertical(strokes0, maps.values[0], maps.values[2], visited)
        self._fill_horizontal_and_vertical(strokes45, maps.values[1], maps.values[3], None)

        maps.ink_count = int(visited.sum())
        return maps

    def _fill_horizontal_and_vertical(self, strokes: List[Stroke], horizontal: np.ndarray,
                                      vertical: np.ndarray, visited) -> None:
        """
        在同一次遍历中填充水平与竖直方向的列值

        每个单元保留最大强度
        """
        columns = self.params.column_count
        cells = self.params.column_cell_count
        xs, ys, angles = self._collect_samples(strokes, self.sample_step)

        column_h = self._cell_index(xs, columns)
        cell_h = self._cell_index(ys, cells)
        # 逆时针旋转 90° 后，y 的正方向变为 x 的负方向
        column_v = self._cell_index(1.0 - ys, columns)
        cell_v = self._cell_index(xs, cells)

        np.maximum.at(horizontal, (column_h, cell_h), MathUtils.directional_intensity(angles, 0.0))
        np.maximum.at(vertical, (column_v, cell_v), MathUtils.directional_intensity(angles, HALF_PI))

        if visited is not None:
            visited[column_h, cell_h] = True


class PixelGridFeatureExtractor(FeatureExtractor):
    """
    像素网格特征提取器

    grid_side × grid_side 网格，四个方向在一次遍历中计算
    """

    strategy = FeatureStrategy.PIXEL_GRID

    def extract(self, strokes: Sequence[Stroke]) -> FeatureMaps:
        side = self.params.grid_side
        maps = FeatureMaps.zeros(side, side, two_dimensional=True)

        xs, ys, angles = self._collect_samples(StrokePreprocessor.normalize(strokes))
        pixel_x = self._cell_index(xs, side)
        pixel_y = self._cell_index(ys, side)

        for index, reference in enumerate((0.0, ONE_QUARTER_PI, HALF_PI, THREE_QUARTERS_PI)):
            np.maximum.at(maps.values[index], (pixel_x, pixel_y),
                          MathUtils.directional_intensity(angles, reference))

        visited = np.zeros((side, side), dtype=bool)
        visited[pixel_x, pixel_y] = True
        maps.ink_count = int(visited.sum())
        return maps


def create_feature_extractor(params: RecognizerParams) -> FeatureExtractor:
    """
    按参数中的策略创建特征提取器

    Args:
        params (RecognizerParams): 识别参数

    Returns:
        FeatureExtractor: 特征提取器
    """
    strategy = FeatureStrategy(params.strategy)
    if strategy is FeatureStrategy.PIXEL_GRID:
        return PixelGridFeatureExtractor(params)
    return ColumnFeatureExtractor(params, continuous=strategy is FeatureStrategy.CONTINUOUS_COLUMN)
