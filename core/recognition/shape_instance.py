# -*- coding: utf-8 -*-
"""
形状实例

一个（带标注或待识别的）形状样例：笔画集合、标注信息与四方向特征图
"""

import math
import copy
from dataclasses import dataclass, field
from typing import List, Optional

from core.stroke_model import Stroke
from core.features.feature_extractor import FeatureExtractor, FeatureMaps
from core.stroke_processing.stroke_loader import LoadedShape


@dataclass
class ShapeInstance:
    """
    形状实例

    Attributes:
        strokes (List[Stroke]): 预处理后的笔画，特征计算只读取它们的副本
        features (FeatureMaps): 四方向特征图
        actual_shape_id (int): 标注的形状ID，未知为 -1
        subject_id (int): 测试者ID
        example_number (int): 样例编号
        recognized_shape_id (int): 识别结果，识别前为 -1
        recognized_distance (float): 与最近模板的距离，识别前为 NaN
        time_to_recognize (float): 模板搜索耗时（秒），识别前为 NaN
    """
    strokes: List[Stroke]
    features: FeatureMaps
    actual_shape_id: int = -1
    subject_id: int = -1
    example_number: int = -1
    recognized_shape_id: int = -1
    recognized_distance: float = math.nan
    time_to_recognize: float = math.nan
    source_path: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_strokes(cls, strokes: List[Stroke], extractor: FeatureExtractor,
                     actual_shape_id: int = -1, subject_id: int = -1,
                     example_number: int = -1, source_path: Optional[str] = None) -> 'ShapeInstance':
        """
        由预处理后的笔画构造实例并提取特征

        Raises:
            ValueError: 没有任何笔画
        """
        if not strokes:
            raise ValueError("A shape instance needs at least one stroke")
        return cls(strokes=list(strokes),
                   features=extractor.extract(strokes),
                   actual_shape_id=actual_shape_id,
                   subject_id=subject_id,
                   example_number=example_number,
                   source_path=source_path)

    @classmethod
    def from_loaded(cls, shape: LoadedShape, extractor: FeatureExtractor) -> 'ShapeInstance':
        """由加载的笔迹文件构造实例"""
        return cls.from_strokes(shape.strokes, extractor,
                                actual_shape_id=shape.shape_id,
                                subject_id=shape.subject_id,
                                example_number=shape.example_number,
                                source_path=shape.path)

    @property
    def ink_count(self) -> int:
        return self.features.ink_count

    @property
    def is_recognized(self) -> bool:
        return self.recognized_shape_id != -1

    @property
    def is_correct(self) -> bool:
        return self.is_recognized and self.recognized_shape_id == self.actual_shape_id

    def reset_recognition(self):
        """清除识别结果"""
        self.recognized_shape_id = -1
        self.recognized_distance = math.nan
        self.time_to_recognize = math.nan

    def copy(self) -> 'ShapeInstance':
        """深拷贝（交叉验证中避免修改共享数据）"""
        return copy.deepcopy(self)
