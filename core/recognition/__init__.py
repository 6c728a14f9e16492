# -*- coding: utf-8 -*-
"""
识别模块

形状实例、模板构建、最近模板分类与识别器接口
"""

from .shape_instance import ShapeInstance
from .template import Template, TemplateBuilder
from .classifier import Classifier
from .recognizer import Recognizer, group_by_shape, group_by_subject

__all__ = [
    'ShapeInstance',
    'Template',
    'TemplateBuilder',
    'Classifier',
    'Recognizer',
    'group_by_shape',
    'group_by_subject',
]
