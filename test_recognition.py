# -*- coding: utf-8 -*-
"""
模板训练、分类与识别器接口测试
"""

import math

import numpy as np
import pytest

from conftest import make_stroke, line_coords, write_stroke_file, shape_file_name
from config.settings import RecognizerParams
from core.features import FeatureMaps, create_feature_extractor
from core.recognition import (
    ShapeInstance, Template, TemplateBuilder, Classifier, Recognizer,
    group_by_shape, group_by_subject,
)


def instance_from_values(values, ink_count=0, **labels):
    features = FeatureMaps(np.asarray(values, dtype=np.float64), ink_count=ink_count)
    return ShapeInstance(strokes=[make_stroke([(0, 0), (1, 1)])], features=features, **labels)


def template_from_values(shape_id, values, avg_ink_count=0.0):
    features = FeatureMaps(np.asarray(values, dtype=np.float64)).freeze()
    return Template(shape_id=shape_id, features=features, avg_ink_count=avg_ink_count, instance_count=1)


def line_instances(recognizer, kind, shape_id, subjects=(1, 2, 3), examples=(1, 2)):
    instances = []
    for subject in subjects:
        for example in examples:
            coords = line_coords(kind, count=12 + example, offset=3.0 * subject,
                                 tilt=0.1 * subject * (example - 1))
            instances.append(recognizer.instance_from_strokes(
                [make_stroke(coords)], actual_shape_id=shape_id,
                subject_id=subject, example_number=example))
    return instances


class TestTemplateBuilder:

    def test_zero_instances_rejected(self):
        with pytest.raises(ValueError):
            TemplateBuilder(RecognizerParams()).build(1, [])

    def test_single_instance_without_smoothing(self):
        params = RecognizerParams(intersection_gaussian_width=1, template_boost=1.0)
        values = np.random.default_rng(1).random((4, 3, 3))
        template = TemplateBuilder(params).build(7, [instance_from_values(values, ink_count=5)])
        assert np.allclose(template.values, values)
        assert template.avg_ink_count == 5
        assert template.instance_count == 1

    def test_average_boost_and_ink(self):
        params = RecognizerParams(intersection_gaussian_width=1, template_boost=2.0)
        first = instance_from_values(np.zeros((4, 2, 2)), ink_count=2)
        second = instance_from_values(np.ones((4, 2, 2)), ink_count=5)
        template = TemplateBuilder(params).build(3, [first, second])
        assert np.allclose(template.values, 1.0)
        assert template.avg_ink_count == pytest.approx(3.5)

    def test_template_is_read_only_copy(self):
        params = RecognizerParams(intersection_gaussian_width=1)
        values = np.ones((4, 2, 2))
        instance = instance_from_values(values)
        template = TemplateBuilder(params).build(1, [instance])
        with pytest.raises(ValueError):
            template.values[0, 0, 0] = 0.0
        instance.features.values[0, 0, 0] = 9.0
        assert template.values[0, 0, 0] == 1.0

    def test_smoothing_applied(self):
        params = RecognizerParams(intersection_gaussian_width=3)
        values = np.zeros((4, 1, 3))
        values[:, 0, 1] = 1.0
        template = TemplateBuilder(params).build(1, [instance_from_values(values)])
        assert template.values[0, 0] == pytest.approx([0.2248, 0.5504, 0.2248])

    def test_build_all_sorted(self):
        params = RecognizerParams(intersection_gaussian_width=1)
        groups = {5: [instance_from_values(np.zeros((4, 1, 1)))],
                  2: [instance_from_values(np.ones((4, 1, 1)))]}
        templates = TemplateBuilder(params).build_all(groups)
        assert [t.shape_id for t in templates] == [2, 5]


class TestClassifier:

    def test_distance(self):
        classifier = Classifier(RecognizerParams())
        instance = instance_from_values(np.zeros((4, 1, 2)))
        template = template_from_values(1, np.full((4, 1, 2), 0.5))
        assert classifier.distance(instance, template) == pytest.approx(math.sqrt(8 * 0.25))

    def test_ink_count_term(self):
        classifier = Classifier(RecognizerParams(ink_count_weight=0.5))
        instance = instance_from_values(np.zeros((4, 1, 1)), ink_count=10)
        template = template_from_values(1, np.zeros((4, 1, 1)), avg_ink_count=4.0)
        assert classifier.distance(instance, template) == pytest.approx(3.0)

    def test_shape_mismatch(self):
        classifier = Classifier(RecognizerParams())
        with pytest.raises(ValueError):
            classifier.distance(instance_from_values(np.zeros((4, 2, 2))),
                                template_from_values(1, np.zeros((4, 3, 3))))

    def test_empty_template_list(self):
        instance = instance_from_values(np.zeros((4, 1, 1)))
        shape_id, distance = Classifier(RecognizerParams()).classify(instance, [])
        assert shape_id == -1
        assert math.isinf(distance)
        assert instance.recognized_shape_id == -1
        assert not instance.is_recognized

    def test_nearest_and_tie_break(self):
        classifier = Classifier(RecognizerParams())
        instance = instance_from_values(np.zeros((4, 1, 1)))
        templates = [template_from_values(5, np.ones((4, 1, 1))),
                     template_from_values(9, np.full((4, 1, 1), 0.5)),
                     template_from_values(3, np.full((4, 1, 1), 0.5))]
        shape_id, distance = classifier.classify(instance, templates)
        assert shape_id == 9
        assert distance == pytest.approx(1.0)
        assert instance.recognized_distance == pytest.approx(1.0)
        assert instance.time_to_recognize >= 0.0


class TestShapeInstance:

    def test_empty_strokes_rejected(self):
        extractor = create_feature_extractor(RecognizerParams())
        with pytest.raises(ValueError):
            ShapeInstance.from_strokes([], extractor)

    def test_unrecognized_defaults(self):
        instance = instance_from_values(np.zeros((4, 1, 1)), actual_shape_id=2)
        assert instance.recognized_shape_id == -1
        assert math.isnan(instance.recognized_distance)
        assert math.isnan(instance.time_to_recognize)
        assert not instance.is_correct

    def test_copy_is_independent(self):
        instance = instance_from_values(np.zeros((4, 1, 1)), actual_shape_id=2)
        copied = instance.copy()
        copied.recognized_shape_id = 2
        copied.features.values[0, 0, 0] = 1.0
        assert instance.recognized_shape_id == -1
        assert instance.features.values[0, 0, 0] == 0.0

    def test_grouping(self):
        instances = [instance_from_values(np.zeros((4, 1, 1)), actual_shape_id=s, subject_id=u)
                     for s, u in [(1, 1), (2, 1), (1, 2)]]
        assert sorted(group_by_shape(instances)) == [1, 2]
        assert [len(v) for _, v in sorted(group_by_subject(instances).items())] == [2, 1]


class TestRecognizer:

    @pytest.mark.parametrize("strategy", ['continuous_column', 'smoothed_column', 'pixel_grid'])
    def test_self_recognition(self, strategy):
        recognizer = Recognizer(RecognizerParams(strategy=strategy))
        dataset = (line_instances(recognizer, 'horizontal', 1) +
                   line_instances(recognizer, 'vertical', 2))
        recognizer.train(dataset)

        assert [t.shape_id for t in recognizer.templates] == [1, 2]
        recognizer.recognize(dataset)
        assert all(instance.is_correct for instance in dataset)
        assert recognizer.time_to_train >= 0.0

    def test_recognize_single_instance(self):
        recognizer = Recognizer()
        recognizer.train(line_instances(recognizer, 'horizontal', 1) +
                         line_instances(recognizer, 'vertical', 2))
        unknown = recognizer.instance_from_strokes([make_stroke(line_coords('vertical', 15))])
        shape_id, distance = recognizer.recognize(unknown)
        assert shape_id == 2
        assert distance == unknown.recognized_distance
        assert recognizer.accepts(unknown)

    def test_threshold(self):
        recognizer = Recognizer(RecognizerParams(recognition_distance_threshold=0.0))
        recognizer.train(line_instances(recognizer, 'horizontal', 1))
        unknown = recognizer.instance_from_strokes([make_stroke(line_coords('horizontal', 15))])
        recognizer.recognize(unknown)
        assert unknown.recognized_shape_id == 1
        assert not recognizer.accepts(unknown)

    def test_untrained_recognizer(self):
        recognizer = Recognizer()
        unknown = recognizer.instance_from_strokes([make_stroke(line_coords('horizontal', 15))])
        assert recognizer.recognize(unknown) == (-1, math.inf)

    def test_short_strokes_dropped(self):
        recognizer = Recognizer()
        with pytest.raises(ValueError):
            recognizer.instance_from_strokes([make_stroke([(0, 0), (1, 1), (2, 2)])])

    def test_empty_strokes_never_reach_instances(self, tmp_path):
        (tmp_path / shape_file_name(1, 1, 1)).write_text("1\n0\n", encoding='utf-8')
        write_stroke_file(tmp_path / shape_file_name(1, 2, 1), [line_coords('vertical', 10)])

        recognizer = Recognizer(RecognizerParams(min_point_count=0))
        dataset = recognizer.load_dataset(str(tmp_path))
        assert [i.actual_shape_id for i in dataset] == [2]

        with pytest.raises(ValueError):
            recognizer.instance_from_strokes([make_stroke([])])

    def test_get_template(self):
        recognizer = Recognizer()
        recognizer.train(line_instances(recognizer, 'horizontal', 4))
        assert recognizer.get_template(4).shape_id == 4
        assert recognizer.get_template(3) is None
        assert recognizer.get_template(-1) is None

    def test_train_with_holdout(self):
        recognizer = Recognizer()
        dataset = (line_instances(recognizer, 'horizontal', 1, examples=(1, 2, 3)) +
                   line_instances(recognizer, 'vertical', 2, examples=(1, 2, 3)))
        recognizer.train_with_holdout(dataset, [3])

        assert len(recognizer.holdouts) == 6
        assert all(h.example_number == 3 for h in recognizer.holdouts)
        assert all(t.instance_count == 6 for t in recognizer.templates)

        recognizer.recognize(recognizer.holdouts)
        assert all(h.is_correct for h in recognizer.holdouts)

    def test_load_dataset_and_instance(self, two_class_dataset_dir, tmp_path):
        recognizer = Recognizer()
        dataset = recognizer.load_dataset(str(two_class_dataset_dir))
        assert len(dataset) == 12
        assert {i.subject_id for i in dataset} == {1, 2, 3}

        recognizer.train(dataset)
        labeled = recognizer.load_instance(str(two_class_dataset_dir / shape_file_name(2, 2, 1)))
        assert labeled.actual_shape_id == 2

        unlabeled_path = write_stroke_file(tmp_path / "unknown.txt", [line_coords('horizontal', 14)])
        unlabeled = recognizer.load_instance(str(unlabeled_path))
        assert unlabeled.actual_shape_id == -1
        assert recognizer.recognize(unlabeled)[0] == 1
