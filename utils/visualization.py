# -*- coding: utf-8 -*-
"""
可视化工具

把笔画、特征图、模板和混淆矩阵渲染为图片文件
只读取数据，不修改任何几何或特征
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from config.settings import describe_shape


DIRECTION_TITLES = ('0°', '45°', '90°', '135°')


class Visualizer:
    """
    可视化器

    所有图像保存到文件，不弹出窗口

    Args:
        dpi (int): 输出分辨率
    """

    def __init__(self, dpi: int = 150):
        self.dpi = dpi
        self.logger = logging.getLogger(__name__)

    def _save(self, fig, output_path) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=self.dpi, bbox_inches='tight')
        plt.close(fig)
        self.logger.info(f"Figure saved to {output_path}")
        return output_path

    def plot_feature_maps(self, values: np.ndarray, output_path, title: str = '') -> Path:
        """
        绘制四方向特征图

        Args:
            values (np.ndarray): 形如 (4, rows, cols) 的特征数组
            output_path: 输出文件路径
            title (str): 标题

        Returns:
            Path: 输出文件路径
        """
        values = np.asarray(values)
        if values.ndim != 3 or values.shape[0] != len(DIRECTION_TITLES):
            raise ValueError(f"Expected a (4, rows, cols) array, got shape {values.shape}")

        fig, axes = plt.subplots(1, 4, figsize=(16, 4))
        vmax = max(float(values.max()), 1e-12)

        for ax, direction, title_text in zip(axes, values, DIRECTION_TITLES):
            # 数组按 [列, 单元] 存储，转置后横轴为列
            ax.imshow(direction.T, cmap='viridis', vmin=0.0, vmax=vmax,
                      origin='upper', interpolation='nearest')
            ax.set_title(title_text)
            ax.axis('off')

        if title:
            fig.suptitle(title)
        return self._save(fig, output_path)

    def plot_template(self, template, output_path) -> Path:
        """绘制模板的四方向特征图"""
        title = f"Template {describe_shape(template.shape_id)} (n={template.instance_count})"
        return self.plot_feature_maps(template.values, output_path, title)

    def plot_strokes(self, strokes: Sequence, output_path, title: str = '') -> Path:
        """
        绘制笔画轨迹

        Args:
            strokes (Sequence[Stroke]): 笔画集合
            output_path: 输出文件路径
            title (str): 标题
        """
        fig, ax = plt.subplots(figsize=(6, 6))
        for index, stroke in enumerate(strokes):
            coords = np.asarray(stroke.positions, dtype=np.float64)
            if len(coords) == 0:
                continue
            ax.plot(coords[:, 0], coords[:, 1], marker='o', markersize=2,
                    linewidth=1.5, label=f'Stroke {index + 1}')

        ax.set_aspect('equal')
        ax.invert_yaxis()
        if len(strokes) > 1:
            ax.legend()
        if title:
            ax.set_title(title)
        return self._save(fig, output_path)

    def plot_confusion_matrix(self, matrix: np.ndarray, shape_ids: List[int], output_path,
                              title: Optional[str] = None) -> Path:
        """
        绘制混淆矩阵，行为实际形状，列为识别结果

        Args:
            matrix (np.ndarray): k×k 混淆矩阵
            shape_ids (List[int]): 形状ID
            output_path: 输出文件路径
            title (str, optional): 标题
        """
        matrix = np.asarray(matrix, dtype=np.float64)
        size = max(4, 0.45 * len(shape_ids) + 2)
        fig, ax = plt.subplots(figsize=(size, size))

        image = ax.imshow(matrix, cmap='Blues', interpolation='nearest')
        fig.colorbar(image, ax=ax, fraction=0.046, pad=0.04)

        ax.set_xticks(range(len(shape_ids)))
        ax.set_yticks(range(len(shape_ids)))
        ax.set_xticklabels([str(s) for s in shape_ids])
        ax.set_yticklabels([str(s) for s in shape_ids])
        ax.set_xlabel('Recognized shape')
        ax.set_ylabel('Actual shape')
        ax.set_title(title or 'Confusion matrix')

        threshold = matrix.max() / 2.0 if matrix.size else 0.0
        for i in range(matrix.shape[0]):
            for j in range(matrix.shape[1]):
                if matrix[i, j]:
                    ax.text(j, i, f"{matrix[i, j]:.3g}", ha='center', va='center', fontsize=7,
                            color='white' if matrix[i, j] > threshold else 'black')

        return self._save(fig, output_path)
