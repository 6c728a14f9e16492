# -*- coding: utf-8 -*-
"""
测试公共工具

合成笔画与笔迹文件的构造函数
"""

import sys
from pathlib import Path

import pytest

# 添加项目根目录到Python路径
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from core.stroke_model import Stroke, StrokePoint


def make_stroke(coords, start_time=0.0):
    """由坐标列表构造笔画，时间戳每点递增10"""
    return Stroke([StrokePoint(float(x), float(y), start_time + 10.0 * i)
                   for i, (x, y) in enumerate(coords)])


def line_coords(kind, count=20, offset=0.0, tilt=0.0):
    """
    直线坐标

    Args:
        kind (str): 'horizontal' 或 'vertical'
        count (int): 点数
        offset (float): 平移量
        tilt (float): 每步在垂直方向上的微小偏移
    """
    if kind == 'horizontal':
        return [(offset + 10.0 * i, 50.0 + tilt * i) for i in range(count)]
    if kind == 'vertical':
        return [(50.0 + tilt * i, offset + 10.0 * i) for i in range(count)]
    raise ValueError(kind)


def write_stroke_file(path, strokes, delimiter='\t'):
    """
    按笔迹文件格式写出笔画

    Args:
        path: 文件路径
        strokes: 每个元素为 (x, y) 坐标列表
        delimiter (str): 字段分隔符
    """
    lines = [str(len(strokes))]
    timestamp = 0
    for coords in strokes:
        lines.append(str(len(coords)))
        for x, y in coords:
            lines.append(delimiter.join([str(x), str(y), '0', '0', '0', str(timestamp)]))
            timestamp += 10
    Path(path).write_text("\n".join(lines) + "\n", encoding='utf-8')
    return Path(path)


def shape_file_name(subject, shape, example):
    return f"sub{subject:02d}-shp{shape:02d}-ex{example:02d}.txt"


@pytest.fixture
def two_class_dataset_dir(tmp_path):
    """
    3个测试者、2个形状（1=水平线，2=竖直线）、每人每类2个样例
    """
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    kinds = {1: 'horizontal', 2: 'vertical'}
    for subject in (1, 2, 3):
        for shape, kind in kinds.items():
            for example in (1, 2):
                coords = line_coords(kind, count=15 + subject + example,
                                     offset=5.0 * subject, tilt=0.2 * (example - 1) * subject)
                write_stroke_file(data_dir / shape_file_name(subject, shape, example), [coords])
    return data_dir
