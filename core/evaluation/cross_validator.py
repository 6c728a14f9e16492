# -*- coding: utf-8 -*-
"""
留一测试者交叉验证

依次留出每个测试者：用其余测试者的实例训练模板，识别留出的实例并统计
混淆矩阵、准确率、精确率、召回率与F值，最后在最前面插入所有测试者的平均结果
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
from sklearn.metrics import confusion_matrix, precision_recall_fscore_support
from tqdm import tqdm

from config.settings import RecognizerParams
from core.recognition.shape_instance import ShapeInstance
from core.recognition.template import TemplateBuilder
from core.recognition.classifier import Classifier
from core.recognition.recognizer import group_by_shape, group_by_subject
from utils.logging_utils import get_context_logger
from utils.performance import Timer


AGGREGATE_SUBJECT_ID = -1


@dataclass
class CrossValidationResult:
    """
    单个测试者（或全体平均）的交叉验证结果

    confusion_matrix 按行主序排列，行为实际形状，列为识别结果。
    平均结果的数值字段均为逐元素平均，唯一例外是 instance_count（总和）
    """
    subject_id: int
    shape_ids: List[int]
    accuracy: float = 0.0
    confusion_matrix: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    true_positives: np.ndarray = field(default_factory=lambda: np.zeros(0))
    false_positives: np.ndarray = field(default_factory=lambda: np.zeros(0))
    precisions: np.ndarray = field(default_factory=lambda: np.zeros(0))
    recalls: np.ndarray = field(default_factory=lambda: np.zeros(0))
    f_measures: np.ndarray = field(default_factory=lambda: np.zeros(0))
    time_to_train: float = 0.0
    avg_time_to_recognize: float = 0.0
    # 平均结果中为各测试者实例数之和，不取平均
    instance_count: int = 0

    @property
    def is_aggregate(self) -> bool:
        return self.subject_id == AGGREGATE_SUBJECT_ID

    def reindexed(self, shape_ids: Sequence[int]) -> 'CrossValidationResult':
        """
        映射到更大的形状ID集合，缺失的类别补0

        Args:
            shape_ids (Sequence[int]): 目标形状ID（需包含当前全部ID）
        """
        shape_ids = list(shape_ids)
        positions = [shape_ids.index(shape_id) for shape_id in self.shape_ids]
        size = len(shape_ids)

        def expand(values):
            expanded = np.zeros(size)
            expanded[positions] = values
            return expanded

        matrix = np.zeros((size, size))
        matrix[np.ix_(positions, positions)] = self.confusion_matrix

        return CrossValidationResult(
            subject_id=self.subject_id,
            shape_ids=shape_ids,
            accuracy=self.accuracy,
            confusion_matrix=matrix,
            true_positives=expand(self.true_positives),
            false_positives=expand(self.false_positives),
            precisions=expand(self.precisions),
            recalls=expand(self.recalls),
            f_measures=expand(self.f_measures),
            time_to_train=self.time_to_train,
            avg_time_to_recognize=self.avg_time_to_recognize,
            instance_count=self.instance_count,
        )


class CrossValidator:
    """
    留一测试者交叉验证器

    Args:
        params (RecognizerParams): 识别参数
        max_workers (int): 并行处理测试者的线程数，1 为串行
        show_progress (bool): 是否显示进度条
    """

    def __init__(self, params: RecognizerParams, max_workers: int = 1, show_progress: bool = False):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.params = params
        self.max_workers = max_workers
        self.show_progress = show_progress
        self.builder = TemplateBuilder(params)
        self.classifier = Classifier(params)
        self.logger = logging.getLogger(__name__)

    def run(self, dataset: Sequence[ShapeInstance]) -> List[CrossValidationResult]:
        """
        执行交叉验证

        Args:
            dataset (Sequence[ShapeInstance]): 全部带标注实例（不会被修改）

        Returns:
            List[CrossValidationResult]: 第一项为平均结果，其后按测试者ID排序
        """
        by_subject = group_by_subject(dataset)
        subject_ids = sorted(by_subject)
        if not subject_ids:
            raise ValueError("Cross-validation needs at least one labeled instance")

        self.logger.info(f"Cross-validating {len(dataset)} instances over {len(subject_ids)} subjects")

        with Timer("cross_validation") as timer:
            if self.max_workers > 1 and len(subject_ids) > 1:
                results = self._run_parallel(subject_ids, by_subject)
            else:
                iterator = tqdm(subject_ids, desc="Subjects") if self.show_progress else subject_ids
                results = [self.evaluate_subject(subject_id, by_subject) for subject_id in iterator]

        results.sort(key=lambda r: r.subject_id)
        aggregate = self.aggregate(results)

        self.logger.info(f"Cross-validation finished in {timer.elapsed_time:.2f} seconds, "
                         f"average accuracy {aggregate.accuracy:.4f}")
        return [aggregate] + results

    def _run_parallel(self, subject_ids: List[int],
                      by_subject: Dict[int, List[ShapeInstance]]) -> List[CrossValidationResult]:
        """并行处理各测试者，结果顺序由调用方统一排序"""
        results = []
        progress = tqdm(total=len(subject_ids), desc="Subjects") if self.show_progress else None

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self.evaluate_subject, subject_id, by_subject): subject_id
                       for subject_id in subject_ids}

            try:
                for future in as_completed(futures):
                    results.append(future.result())
                    if progress is not None:
                        progress.update(1)
            finally:
                if progress is not None:
                    progress.close()

        return results

    def evaluate_subject(self, subject_id: int,
                         by_subject: Dict[int, List[ShapeInstance]]) -> CrossValidationResult:
        """
        留出一个测试者：用其余测试者训练，识别留出实例并评分

        Args:
            subject_id (int): 留出的测试者ID
            by_subject (Dict[int, List[ShapeInstance]]): 按测试者分组的数据

        Returns:
            CrossValidationResult: 该测试者的结果
        """
        logger = get_context_logger(self.logger, subject=subject_id)

        training = [instance for other_id, instances in by_subject.items()
                    if other_id != subject_id for instance in instances]

        with Timer("train") as timer:
            templates = self.builder.build_all(group_by_shape(training))
        shape_ids = sorted(template.shape_id for template in templates)

        holdouts = []
        for instance in by_subject[subject_id]:
            if instance.actual_shape_id not in shape_ids:
                logger.warning(f"No template for shape {instance.actual_shape_id}, "
                               f"skipping example {instance.example_number}")
                continue
            holdout = instance.copy()
            self.classifier.classify(holdout, templates)
            holdouts.append(holdout)

        result = self.score(subject_id, shape_ids, holdouts, timer.elapsed_time)
        logger.info(f"Accuracy {result.accuracy:.4f} on {result.instance_count} instances "
                    f"({len(templates)} templates trained in {timer.elapsed_time:.3f}s)")
        return result

    @staticmethod
    def score(subject_id: int, shape_ids: List[int], holdouts: Sequence[ShapeInstance],
              time_to_train: float) -> CrossValidationResult:
        """
        根据识别结果计算各项指标

        精确率、召回率与F值的分母为0时取0

        Args:
            subject_id (int): 测试者ID
            shape_ids (List[int]): 排序后的形状ID
            holdouts (Sequence[ShapeInstance]): 已识别的实例
            time_to_train (float): 训练耗时（秒）

        Returns:
            CrossValidationResult: 评分结果
        """
        k = len(shape_ids)
        result = CrossValidationResult(subject_id=subject_id, shape_ids=list(shape_ids),
                                       confusion_matrix=np.zeros((k, k)),
                                       true_positives=np.zeros(k), false_positives=np.zeros(k),
                                       precisions=np.zeros(k), recalls=np.zeros(k),
                                       f_measures=np.zeros(k), time_to_train=time_to_train)
        if not holdouts or k == 0:
            return result

        actual = [h.actual_shape_id for h in holdouts]
        recognized = [h.recognized_shape_id for h in holdouts]

        matrix = confusion_matrix(actual, recognized, labels=shape_ids).astype(np.float64)
        precisions, recalls, f_measures, _ = precision_recall_fscore_support(
            actual, recognized, labels=shape_ids, average=None, zero_division=0)

        true_positives = np.diag(matrix)
        result.confusion_matrix = matrix
        result.true_positives = true_positives
        result.false_positives = matrix.sum(axis=0) - true_positives
        result.precisions = np.asarray(precisions, dtype=np.float64)
        result.recalls = np.asarray(recalls, dtype=np.float64)
        result.f_measures = np.asarray(f_measures, dtype=np.float64)
        result.accuracy = float(true_positives.sum() / len(holdouts))
        result.avg_time_to_recognize = float(np.mean([h.time_to_recognize for h in holdouts]))
        result.instance_count = len(holdouts)
        return result

    @staticmethod
    def aggregate(results: Sequence[CrossValidationResult]) -> CrossValidationResult:
        """
        计算所有测试者结果的逐元素平均值

        各测试者的形状ID集合不同时，先映射到它们的并集（缺失类别补0）。
        instance_count 为总和。

        Args:
            results (Sequence[CrossValidationResult]): 各测试者的结果

        Returns:
            CrossValidationResult: subject_id 为 -1 的平均结果
        """
        if not results:
            raise ValueError("Cannot aggregate an empty result list")

        shape_ids = sorted({shape_id for r in results for shape_id in r.shape_ids})
        aligned = [r.reindexed(shape_ids) for r in results]

        def mean_of(name):
            return np.mean([getattr(r, name) for r in aligned], axis=0)

        return CrossValidationResult(
            subject_id=AGGREGATE_SUBJECT_ID,
            shape_ids=shape_ids,
            accuracy=float(mean_of('accuracy')),
            confusion_matrix=mean_of('confusion_matrix'),
            true_positives=mean_of('true_positives'),
            false_positives=mean_of('false_positives'),
            precisions=mean_of('precisions'),
            recalls=mean_of('recalls'),
            f_measures=mean_of('f_measures'),
            time_to_train=float(mean_of('time_to_train')),
            avg_time_to_recognize=float(mean_of('avg_time_to_recognize')),
            instance_count=int(sum(r.instance_count for r in aligned)),
        )
