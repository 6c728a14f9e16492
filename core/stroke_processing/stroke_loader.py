# -*- coding: utf-8 -*-
"""
笔迹文件加载器

读取纯文本笔迹文件，文件格式：
    第1行为表头（忽略）
    只有一个字段的行表示新笔画的点数 N
    其后 N 行每行6个字段（制表符/空格/逗号分隔）：x y 0 0 0 timestamp

文件名格式为 subXX-shpYY-exZZ...，分别给出测试者ID、形状ID与样例编号
"""

import os
import re
import glob
import logging
from dataclasses import dataclass
from typing import List, Optional

from core.stroke_model import Stroke, StrokePoint
from core.stroke_processing.preprocessor import StrokePreprocessor


# 点行字段分隔符
_TOKEN_PATTERN = re.compile(r'[\t ,]+')


class StrokeFormatError(ValueError):
    """笔迹文件内容或文件名格式错误"""


@dataclass(frozen=True)
class ShapeFileName:
    """从文件名解析出的标注信息"""
    subject_id: int
    shape_id: int
    example_number: int

    @classmethod
    def parse(cls, file_name: str) -> 'ShapeFileName':
        """
        解析 subXX-shpYY-exZZ 格式的文件名

        Args:
            file_name (str): 文件名（可以带目录）

        Returns:
            ShapeFileName: 解析结果

        Raises:
            StrokeFormatError: 文件名不符合格式
        """
        name = os.path.basename(file_name)
        if not (name.startswith('sub') and name[5:9] == '-shp' and name[11:14] == '-ex'):
            raise StrokeFormatError(f"File name does not match subXX-shpYY-exZZ: {name}")
        try:
            return cls(subject_id=int(name[3:5]),
                       shape_id=int(name[9:11]),
                       example_number=int(name[14:16]))
        except ValueError as e:
            raise StrokeFormatError(f"Invalid identifiers in file name {name}: {e}") from e


@dataclass
class LoadedShape:
    """一个笔迹文件加载后的结果"""
    path: str
    strokes: List[Stroke]
    subject_id: int = -1
    shape_id: int = -1
    example_number: int = -1


class StrokeFileLoader:
    """
    笔迹文件加载器

    Args:
        min_point_count (int): 保留笔画所需的最少点数
        preprocessor (StrokePreprocessor, optional): 笔画预处理器
    """

    def __init__(self, min_point_count: int = 4, preprocessor: Optional[StrokePreprocessor] = None):
        self.min_point_count = min_point_count
        self.preprocessor = preprocessor or StrokePreprocessor()
        self.logger = logging.getLogger(__name__)

    def parse_point(self, tokens: List[str], line_number: int) -> StrokePoint:
        """
        解析一个点行

        Raises:
            StrokeFormatError: 字段数不为6或包含非数值字段
        """
        if len(tokens) != 6:
            raise StrokeFormatError(
                f"Line {line_number}: expected 6 fields for a point, got {len(tokens)}")
        try:
            return StrokePoint(x=float(tokens[0]), y=float(tokens[1]), timestamp=float(tokens[5]))
        except ValueError as e:
            raise StrokeFormatError(f"Line {line_number}: non-numeric point field ({e})") from e

    def read_strokes(self, path: str) -> List[Stroke]:
        """
        读取文件中的原始笔画

        空笔画、点数少于 min_point_count 的笔画、实际点数与声明不一致的笔画被丢弃

        Args:
            path (str): 文件路径

        Returns:
            List[Stroke]: 原始笔画（未预处理）

        Raises:
            StrokeFormatError: 文件内容格式错误
        """
        strokes = []
        declared_count = None
        points = []

        def finish_stroke():
            if declared_count is None:
                return
            if len(points) != declared_count:
                self.logger.debug(
                    f"{path}: dropping stroke with {len(points)} points, {declared_count} declared")
            elif declared_count == 0 or declared_count < self.min_point_count:
                self.logger.debug(
                    f"{path}: dropping stroke with {declared_count} points "
                    f"(minimum {self.min_point_count})")
            else:
                strokes.append(Stroke(list(points)))

        with open(path, 'r', encoding='utf-8') as f:
            # 第1行为表头
            f.readline()

            for line_number, line in enumerate(f, start=2):
                line = line.strip()
                if not line:
                    continue

                tokens = _TOKEN_PATTERN.split(line)
                if len(tokens) == 1:
                    finish_stroke()
                    try:
                        declared_count = int(tokens[0])
                    except ValueError as e:
                        raise StrokeFormatError(
                            f"Line {line_number}: invalid point count {tokens[0]!r}") from e
                    points = []
                else:
                    if declared_count is None:
                        raise StrokeFormatError(
                            f"Line {line_number}: point found before any point count")
                    points.append(self.parse_point(tokens, line_number))

        finish_stroke()
        return strokes

    def load_strokes(self, path: str) -> List[Stroke]:
        """
        读取并预处理文件中的笔画

        Args:
            path (str): 文件路径

        Returns:
            List[Stroke]: 预处理后的笔画
        """
        return [self.preprocessor.prepare(stroke) for stroke in self.read_strokes(path)]

    def load_file(self, path: str) -> LoadedShape:
        """
        加载一个带标注的笔迹文件

        Raises:
            StrokeFormatError: 文件名或内容格式错误
        """
        name = ShapeFileName.parse(path)
        return LoadedShape(path=path,
                           strokes=self.load_strokes(path),
                           subject_id=name.subject_id,
                           shape_id=name.shape_id,
                           example_number=name.example_number)

    def load_directory(self, directory: str, pattern: str = 'sub*') -> List[LoadedShape]:
        """
        加载目录下所有笔迹文件

        格式错误的文件记录错误后跳过，没有有效笔画的文件被排除

        Args:
            directory (str): 目录路径
            pattern (str): 文件名匹配模式

        Returns:
            List[LoadedShape]: 按文件名排序的加载结果
        """
        if not os.path.isdir(directory):
            raise FileNotFoundError(f"Data directory not found: {directory}")

        paths = sorted(p for p in glob.glob(os.path.join(directory, pattern)) if os.path.isfile(p))
        shapes = []

        for path in paths:
            try:
                shape = self.load_file(path)
            except (StrokeFormatError, OSError, UnicodeDecodeError) as e:
                self.logger.error(f"Skipping {path}: {e}")
                continue

            if not shape.strokes:
                self.logger.info(f"Excluding {os.path.basename(path)}: no strokes left after filtering")
                continue

            shapes.append(shape)

        self.logger.info(f"Loaded {len(shapes)} shape files from {directory}")
        return shapes
