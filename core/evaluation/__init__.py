# -*- coding: utf-8 -*-
"""
评估模块

留一测试者交叉验证与报告导出
"""

from .cross_validator import CrossValidator, CrossValidationResult, AGGREGATE_SUBJECT_ID
from .report import (
    summary_frame,
    per_shape_frame,
    confusion_frame,
    result_to_dict,
    save_report,
    format_result,
)

__all__ = [
    'CrossValidator',
    'CrossValidationResult',
    'AGGREGATE_SUBJECT_ID',
    'summary_frame',
    'per_shape_frame',
    'confusion_frame',
    'result_to_dict',
    'save_report',
    'format_result',
]
