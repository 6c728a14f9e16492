# -*- coding: utf-8 -*-
"""
交叉验证报告

把交叉验证结果整理为 pandas DataFrame，并导出为 CSV / JSON 文件
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from config.settings import describe_shape
from core.evaluation.cross_validator import CrossValidationResult


logger = logging.getLogger(__name__)


def summary_frame(results: Sequence[CrossValidationResult]) -> pd.DataFrame:
    """
    每个测试者一行的汇总表

    Args:
        results (Sequence[CrossValidationResult]): 交叉验证结果

    Returns:
        pd.DataFrame: 汇总表
    """
    rows = []
    for result in results:
        rows.append({
            'subject_id': result.subject_id,
            'accuracy': result.accuracy,
            'mean_precision': float(np.mean(result.precisions)) if len(result.precisions) else 0.0,
            'mean_recall': float(np.mean(result.recalls)) if len(result.recalls) else 0.0,
            'mean_f_measure': float(np.mean(result.f_measures)) if len(result.f_measures) else 0.0,
            'time_to_train': result.time_to_train,
            'avg_time_to_recognize': result.avg_time_to_recognize,
            'instance_count': result.instance_count,
        })
    return pd.DataFrame(rows)


def per_shape_frame(results: Sequence[CrossValidationResult]) -> pd.DataFrame:
    """
    每个测试者、每个形状一行的明细表

    Returns:
        pd.DataFrame: 明细表
    """
    rows = []
    for result in results:
        for index, shape_id in enumerate(result.shape_ids):
            rows.append({
                'subject_id': result.subject_id,
                'shape_id': shape_id,
                'shape': describe_shape(shape_id),
                'true_positives': result.true_positives[index],
                'false_positives': result.false_positives[index],
                'precision': result.precisions[index],
                'recall': result.recalls[index],
                'f_measure': result.f_measures[index],
            })
    return pd.DataFrame(rows)


def confusion_frame(result: CrossValidationResult) -> pd.DataFrame:
    """
    混淆矩阵表，行为实际形状，列为识别结果
    """
    return pd.DataFrame(result.confusion_matrix,
                        index=pd.Index(result.shape_ids, name='actual'),
                        columns=pd.Index(result.shape_ids, name='recognized'))


def result_to_dict(result: CrossValidationResult) -> Dict:
    """转换为可JSON序列化的字典"""
    return {
        'subject_id': result.subject_id,
        'shape_ids': [int(s) for s in result.shape_ids],
        'accuracy': result.accuracy,
        'confusion_matrix': np.asarray(result.confusion_matrix).tolist(),
        'true_positives': np.asarray(result.true_positives).tolist(),
        'false_positives': np.asarray(result.false_positives).tolist(),
        'precisions': np.asarray(result.precisions).tolist(),
        'recalls': np.asarray(result.recalls).tolist(),
        'f_measures': np.asarray(result.f_measures).tolist(),
        'time_to_train': result.time_to_train,
        'avg_time_to_recognize': result.avg_time_to_recognize,
        'instance_count': result.instance_count,
    }


def save_report(results: Sequence[CrossValidationResult], output_dir) -> List[Path]:
    """
    保存交叉验证报告

    生成 summary.csv、per_shape.csv、confusion_matrix.csv（平均结果）与 results.json

    Args:
        results (Sequence[CrossValidationResult]): 交叉验证结果（第一项为平均结果）
        output_dir: 输出目录

    Returns:
        List[Path]: 写入的文件
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []

    path = output_dir / "summary.csv"
    summary_frame(results).to_csv(path, index=False)
    written.append(path)

    path = output_dir / "per_shape.csv"
    per_shape_frame(results).to_csv(path, index=False)
    written.append(path)

    if results:
        path = output_dir / "confusion_matrix.csv"
        confusion_frame(results[0]).to_csv(path)
        written.append(path)

    path = output_dir / "results.json"
    with open(path, 'w', encoding='utf-8') as f:
        json.dump([result_to_dict(r) for r in results], f, indent=2, ensure_ascii=False)
    written.append(path)

    logger.info(f"Cross-validation report written to {output_dir}")
    return written


def format_result(result: CrossValidationResult) -> str:
    """
    格式化单个结果为文本

    Returns:
        str: 多行文本
    """
    title = "AVERAGE OVER ALL SUBJECTS" if result.is_aggregate else f"SUBJECT {result.subject_id}"
    lines = [
        "=" * 40,
        title,
        "=" * 40,
        f"Accuracy: {result.accuracy:.4f}",
        f"Instances: {result.instance_count}",
        f"Time to train: {result.time_to_train:.4f} s",
        f"Avg time to recognize: {result.avg_time_to_recognize * 1000:.3f} ms",
    ]

    frame = per_shape_frame([result])
    if not frame.empty:
        lines.append("")
        lines.append(frame[['shape', 'precision', 'recall', 'f_measure']]
                     .to_string(index=False, float_format=lambda v: f"{v:.3f}"))
    return "\n".join(lines)
