# -*- coding: utf-8 -*-
"""
识别器

组合加载、特征提取、模板训练与分类的对外接口
"""

import math
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Union

from config.settings import RecognizerParams
from core.stroke_model import Stroke
from core.stroke_processing.preprocessor import StrokePreprocessor
from core.stroke_processing.stroke_loader import StrokeFileLoader, ShapeFileName, StrokeFormatError
from core.features.feature_extractor import create_feature_extractor
from core.recognition.shape_instance import ShapeInstance
from core.recognition.template import Template, TemplateBuilder
from core.recognition.classifier import Classifier
from utils.performance import Timer, timeit


def group_by_shape(instances: Iterable[ShapeInstance]) -> Dict[int, List[ShapeInstance]]:
    """按标注形状ID分组"""
    groups = defaultdict(list)
    for instance in instances:
        groups[instance.actual_shape_id].append(instance)
    return dict(groups)


def group_by_subject(instances: Iterable[ShapeInstance]) -> Dict[int, List[ShapeInstance]]:
    """按测试者ID分组"""
    groups = defaultdict(list)
    for instance in instances:
        groups[instance.subject_id].append(instance)
    return dict(groups)


class Recognizer:
    """
    形状识别器

    Args:
        params (RecognizerParams): 识别参数
    """

    def __init__(self, params: Optional[RecognizerParams] = None):
        self.params = params or RecognizerParams()
        self.logger = logging.getLogger(__name__)

        self.preprocessor = StrokePreprocessor(self.params.angle_smooth_count)
        self.loader = StrokeFileLoader(self.params.min_point_count, self.preprocessor)
        self.extractor = create_feature_extractor(self.params)
        self.builder = TemplateBuilder(self.params)
        self.classifier = Classifier(self.params)

        self.templates: List[Template] = []
        self.holdouts: List[ShapeInstance] = []
        self.time_to_train = math.nan

    # ------------------------------------------------------------------
    # 数据加载
    # ------------------------------------------------------------------

    @timeit
    def load_dataset(self, directory: str) -> List[ShapeInstance]:
        """
        加载目录下的所有带标注实例

        Args:
            directory (str): 数据目录

        Returns:
            List[ShapeInstance]: 实例列表
        """
        shapes = self.loader.load_directory(directory)
        instances = [ShapeInstance.from_loaded(shape, self.extractor) for shape in shapes]
        self.logger.info(f"Built {len(instances)} shape instances "
                         f"({self.extractor.strategy.value} features)")
        return instances

    def instance_from_strokes(self, strokes: Sequence[Stroke], **labels) -> ShapeInstance:
        """
        由原始笔画构造实例（去重、计算并平滑角度后提取特征）

        空笔画和少于 min_point_count 个点的笔画被丢弃

        Raises:
            ValueError: 没有可用的笔画
        """
        prepared = [self.preprocessor.prepare(stroke) for stroke in strokes
                    if len(stroke) > 0 and len(stroke) >= self.params.min_point_count]
        return ShapeInstance.from_strokes(prepared, self.extractor, **labels)

    def load_instance(self, path: str) -> ShapeInstance:
        """
        加载单个笔迹文件

        文件名符合 subXX-shpYY-exZZ 时附带标注信息，否则作为未标注实例

        Raises:
            StrokeFormatError: 文件内容格式错误
            ValueError: 文件中没有可用的笔画
        """
        try:
            name = ShapeFileName.parse(path)
            labels = dict(actual_shape_id=name.shape_id, subject_id=name.subject_id,
                          example_number=name.example_number)
        except StrokeFormatError:
            labels = {}

        strokes = self.loader.load_strokes(path)
        if not strokes:
            raise ValueError(f"No usable strokes in {path}")
        return ShapeInstance.from_strokes(strokes, self.extractor, source_path=path, **labels)

    # ------------------------------------------------------------------
    # 训练
    # ------------------------------------------------------------------

    def build_templates(self, instances: Iterable[ShapeInstance]) -> List[Template]:
        """为每个出现的形状类别构建模板，不修改识别器状态"""
        return self.builder.build_all(group_by_shape(instances))

    def train(self, dataset: Sequence[ShapeInstance]) -> List[Template]:
        """
        使用全部实例训练

        Args:
            dataset (Sequence[ShapeInstance]): 训练实例

        Returns:
            List[Template]: 模板列表
        """
        with Timer("train") as timer:
            self.templates = self.build_templates(dataset)
        self.time_to_train = timer.elapsed_time
        self.holdouts = []

        self.logger.info(f"Trained {len(self.templates)} templates from {len(dataset)} instances "
                         f"in {self.time_to_train:.4f} seconds")
        return self.templates

    def train_with_holdout(self, dataset: Sequence[ShapeInstance],
                           holdout_examples: Iterable[int]) -> List[Template]:
        """
        留出指定样例编号的实例后训练

        Args:
            dataset (Sequence[ShapeInstance]): 全部实例
            holdout_examples (Iterable[int]): 留出的样例编号

        Returns:
            List[Template]: 模板列表，留出的实例保存在 holdouts 中
        """
        holdout_set = set(holdout_examples)
        training = [i for i in dataset if i.example_number not in holdout_set]
        holdouts = [i for i in dataset if i.example_number in holdout_set]

        self.train(training)
        self.holdouts = holdouts
        self.logger.info(f"Held out {len(holdouts)} instances (examples {sorted(holdout_set)})")
        return self.templates

    # ------------------------------------------------------------------
    # 识别
    # ------------------------------------------------------------------

    def recognize(self, instances: Union[ShapeInstance, Sequence[ShapeInstance]]):
        """
        识别一个或多个实例，结果写入实例本身

        Returns:
            单个实例时返回 (形状ID, 距离)，多个实例时返回结果列表
        """
        if isinstance(instances, ShapeInstance):
            return self.classifier.classify(instances, self.templates)
        return [self.classifier.classify(instance, self.templates) for instance in instances]

    def get_template(self, shape_id: int) -> Optional[Template]:
        """获取指定形状的模板，不存在时返回 None"""
        if shape_id < 0:
            return None
        for template in self.templates:
            if template.shape_id == shape_id:
                return template
        return None

    def accepts(self, instance: ShapeInstance) -> bool:
        """识别距离是否低于阈值"""
        return (instance.is_recognized and
                instance.recognized_distance < self.params.recognition_distance_threshold)
