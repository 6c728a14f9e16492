# -*- coding: utf-8 -*-
"""
留一测试者交叉验证与报告导出测试
"""

import json
import math
from collections import Counter

import numpy as np
import pandas as pd
import pytest

from conftest import make_stroke, line_coords
from config.settings import RecognizerParams
from core.recognition import Recognizer
from core.evaluation import (
    CrossValidator, CrossValidationResult, AGGREGATE_SUBJECT_ID,
    summary_frame, per_shape_frame, confusion_frame, save_report, format_result,
)


def labeled(recognizer, coords, shape_id, subject_id, example_number=1):
    return recognizer.instance_from_strokes([make_stroke(coords)], actual_shape_id=shape_id,
                                            subject_id=subject_id, example_number=example_number)


def recognized(actual, predicted):
    """构造已识别的实例"""
    recognizer = Recognizer()
    instance = labeled(recognizer, line_coords('horizontal', 6), actual, 1)
    instance.recognized_shape_id = predicted
    instance.recognized_distance = 1.0
    instance.time_to_recognize = 0.002
    return instance


@pytest.fixture
def dataset(two_class_dataset_dir):
    return Recognizer().load_dataset(str(two_class_dataset_dir))


class TestCrossValidator:

    def test_two_class_three_subjects(self, dataset):
        results = CrossValidator(RecognizerParams()).run(dataset)

        assert [r.subject_id for r in results] == [AGGREGATE_SUBJECT_ID, 1, 2, 3]
        for result in results[1:]:
            assert result.shape_ids == [1, 2]
            assert result.accuracy == pytest.approx(1.0)
            assert np.array_equal(result.confusion_matrix, [[2, 0], [0, 2]])
            assert result.instance_count == 4

        aggregate = results[0]
        assert aggregate.is_aggregate
        assert aggregate.accuracy == pytest.approx(1.0)
        assert aggregate.instance_count == 12

    def test_confusion_rows_match_holdout_counts(self, dataset):
        results = CrossValidator(RecognizerParams(strategy='pixel_grid')).run(dataset)
        for result in results[1:]:
            held_out = Counter(i.actual_shape_id for i in dataset if i.subject_id == result.subject_id)
            assert result.confusion_matrix.sum(axis=1).tolist() == \
                [held_out[shape_id] for shape_id in result.shape_ids]
            assert result.confusion_matrix.sum() == result.instance_count
            assert 0.0 <= result.accuracy <= 1.0
            assert np.allclose(result.true_positives + result.false_positives,
                               result.confusion_matrix.sum(axis=0))

        # 平均结果的每行为各测试者该类实例数的平均值
        assert results[0].confusion_matrix.sum(axis=1) == pytest.approx([2.0, 2.0])

    def test_aggregate_is_mean(self, dataset):
        results = CrossValidator(RecognizerParams(strategy='continuous_column')).run(dataset)
        subjects = results[1:]
        aggregate = results[0]
        assert aggregate.accuracy == pytest.approx(np.mean([r.accuracy for r in subjects]))
        assert np.allclose(aggregate.confusion_matrix,
                           np.mean([r.confusion_matrix for r in subjects], axis=0))
        assert aggregate.time_to_train == pytest.approx(np.mean([r.time_to_train for r in subjects]))

    def test_dataset_not_mutated(self, dataset):
        CrossValidator(RecognizerParams()).run(dataset)
        assert all(instance.recognized_shape_id == -1 for instance in dataset)
        assert all(math.isnan(instance.recognized_distance) for instance in dataset)

    def test_parallel_matches_serial(self, dataset):
        serial = CrossValidator(RecognizerParams(), max_workers=1).run(dataset)
        parallel = CrossValidator(RecognizerParams(), max_workers=3, show_progress=True).run(dataset)

        assert [r.subject_id for r in parallel] == [r.subject_id for r in serial]
        for a, b in zip(serial, parallel):
            assert a.accuracy == b.accuracy
            assert np.array_equal(a.confusion_matrix, b.confusion_matrix)

    def test_missing_class_skipped(self):
        recognizer = Recognizer()
        circle = [(40 * math.cos(t / 10), 40 * math.sin(t / 10)) for t in range(60)]
        instances = []
        for subject in (1, 2, 3):
            instances.append(labeled(recognizer, line_coords('horizontal', 12, offset=subject), 1, subject))
            instances.append(labeled(recognizer, line_coords('vertical', 12, offset=subject), 2, subject))
        instances.append(labeled(recognizer, circle, 3, 3))

        results = CrossValidator(RecognizerParams()).run(instances)
        by_subject = {r.subject_id: r for r in results}

        assert by_subject[3].shape_ids == [1, 2]
        assert by_subject[3].instance_count == 2
        assert by_subject[1].shape_ids == [1, 2, 3]
        assert by_subject[AGGREGATE_SUBJECT_ID].shape_ids == [1, 2, 3]
        assert by_subject[AGGREGATE_SUBJECT_ID].confusion_matrix.shape == (3, 3)

    def test_empty_dataset(self):
        with pytest.raises(ValueError):
            CrossValidator(RecognizerParams()).run([])

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            CrossValidator(RecognizerParams(), max_workers=0)


class TestScoring:

    def test_metrics(self):
        holdouts = [recognized(1, 1), recognized(1, 1), recognized(2, 1)]
        result = CrossValidator.score(4, [1, 2], holdouts, time_to_train=0.5)

        assert np.array_equal(result.confusion_matrix, [[2, 0], [1, 0]])
        assert result.accuracy == pytest.approx(2 / 3)
        assert result.true_positives.tolist() == [2, 0]
        assert result.false_positives.tolist() == [1, 0]
        assert result.precisions == pytest.approx([2 / 3, 0.0])
        assert result.recalls == pytest.approx([1.0, 0.0])
        assert result.f_measures == pytest.approx([0.8, 0.0])
        assert result.avg_time_to_recognize == pytest.approx(0.002)
        assert result.time_to_train == 0.5

    def test_no_holdouts(self):
        result = CrossValidator.score(2, [1, 2], [], time_to_train=0.1)
        assert result.accuracy == 0.0
        assert result.instance_count == 0
        assert result.confusion_matrix.shape == (2, 2)

    def test_aggregate_reindexes_shape_sets(self):
        first = CrossValidator.score(1, [1, 2], [recognized(1, 1), recognized(2, 2)], 1.0)
        second = CrossValidator.score(2, [2, 3], [recognized(3, 2)], 3.0)
        aggregate = CrossValidator.aggregate([first, second])

        assert aggregate.subject_id == AGGREGATE_SUBJECT_ID
        assert aggregate.shape_ids == [1, 2, 3]
        assert aggregate.accuracy == pytest.approx(0.5)
        assert aggregate.time_to_train == pytest.approx(2.0)
        assert aggregate.instance_count == 3
        assert np.allclose(aggregate.confusion_matrix,
                           [[0.5, 0, 0], [0, 0.5, 0], [0, 0.5, 0]])
        assert aggregate.recalls == pytest.approx([0.5, 0.5, 0.0])

    def test_aggregate_empty(self):
        with pytest.raises(ValueError):
            CrossValidator.aggregate([])


class TestReport:

    def test_frames(self, dataset):
        results = CrossValidator(RecognizerParams()).run(dataset)

        summary = summary_frame(results)
        assert summary['subject_id'].tolist() == [-1, 1, 2, 3]
        assert summary['accuracy'].tolist() == pytest.approx([1.0] * 4)

        per_shape = per_shape_frame(results)
        assert len(per_shape) == 8
        assert set(per_shape['shape']) == {"[1]: Curved arrow", "[2]: Straight arrow"}

        confusion = confusion_frame(results[0])
        assert confusion.loc[1, 1] == pytest.approx(2.0)
        assert confusion.index.name == 'actual'

        text = format_result(results[0])
        assert "AVERAGE OVER ALL SUBJECTS" in text
        assert "SUBJECT 2" in format_result(results[2])

    def test_save_report(self, dataset, tmp_path):
        results = CrossValidator(RecognizerParams()).run(dataset)
        written = save_report(results, tmp_path / "report")

        assert {p.name for p in written} == {"summary.csv", "per_shape.csv",
                                             "confusion_matrix.csv", "results.json"}
        assert all(p.exists() for p in written)

        summary = pd.read_csv(tmp_path / "report" / "summary.csv")
        assert len(summary) == 4

        with open(tmp_path / "report" / "results.json", encoding='utf-8') as f:
            data = json.load(f)
        assert data[0]['subject_id'] == -1
        assert data[1]['confusion_matrix'] == [[2.0, 0.0], [0.0, 2.0]]

    def test_result_defaults(self):
        result = CrossValidationResult(subject_id=5, shape_ids=[])
        assert not result.is_aggregate
        assert result.reindexed([1, 2]).confusion_matrix.shape == (2, 2)
