#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
笔迹形状识别器
主程序入口

子命令：
    cross-validate DATA_DIR             留一测试者交叉验证
    holdout DATA_DIR --examples 1 2     留出指定样例编号后训练并识别
    recognize DATA_DIR STROKE_FILE      用全部数据训练后识别单个笔迹文件
"""

import sys
import argparse
import logging
import traceback
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from config.settings import Config, ConfigError, describe_shape
from core.recognition import Recognizer
from core.evaluation import CrossValidator, save_report, format_result
from utils.logging_utils import setup_logging
from utils.performance import measure_time


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='笔迹形状识别器')
    parser.add_argument('--config', '-c', help='YAML配置文件路径')
    parser.add_argument('--strategy', choices=['continuous_column', 'smoothed_column', 'pixel_grid'],
                        help='特征提取策略（覆盖配置文件）')
    parser.add_argument('--output_dir', '--output-dir', '-o', default='output', help='输出目录')
    parser.add_argument('--debug', action='store_true', help='调试模式：详细日志并输出特征图')

    subparsers = parser.add_subparsers(dest='command', required=True)

    cv_parser = subparsers.add_parser('cross-validate', help='留一测试者交叉验证')
    cv_parser.add_argument('data_dir', help='笔迹数据目录')
    cv_parser.add_argument('--workers', type=int, help='并行线程数（覆盖配置文件）')
    cv_parser.add_argument('--progress', action='store_true', help='显示进度条')

    holdout_parser = subparsers.add_parser('holdout', help='留出指定样例后训练并识别')
    holdout_parser.add_argument('data_dir', help='笔迹数据目录')
    holdout_parser.add_argument('--examples', type=int, nargs='+', required=True,
                                help='留出的样例编号')

    recognize_parser = subparsers.add_parser('recognize', help='识别单个笔迹文件')
    recognize_parser.add_argument('data_dir', help='训练数据目录')
    recognize_parser.add_argument('stroke_file', help='待识别的笔迹文件')

    return parser


def load_config(args) -> Config:
    """加载配置并应用命令行覆盖项"""
    if args.config and not Path(args.config).exists():
        raise ConfigError(f"Config file not found: {args.config}")

    config = Config(args.config)
    if args.strategy:
        config.set('features', 'strategy', args.strategy)
    if getattr(args, 'workers', None) is not None:
        config.set('cross_validation', 'max_workers', args.workers)
    if getattr(args, 'progress', False):
        config.set('cross_validation', 'show_progress', True)
    if args.debug:
        config.set('logging', 'console_level', 'DEBUG')
    return config


def run_cross_validation(config: Config, recognizer: Recognizer, args, output_dir: Path) -> int:
    dataset = recognizer.load_dataset(args.data_dir)
    if not dataset:
        print(f"错误: 数据目录中没有可用的笔迹文件 {args.data_dir}")
        return 1

    validator = CrossValidator(recognizer.params,
                               max_workers=int(config.get('cross_validation', 'max_workers', 1)),
                               show_progress=bool(config.get('cross_validation', 'show_progress', False)))

    with measure_time("Cross-validation"):
        results = validator.run(dataset)

    for result in results:
        print(format_result(result))

    written = save_report(results, output_dir)
    print(f"\n报告文件: {', '.join(str(p) for p in written)}")

    if args.debug:
        from utils.visualization import Visualizer
        aggregate = results[0]
        Visualizer().plot_confusion_matrix(aggregate.confusion_matrix, aggregate.shape_ids,
                                           output_dir / 'confusion_matrix.png',
                                           title='Average confusion matrix')
    return 0


def run_holdout(recognizer: Recognizer, args, output_dir: Path) -> int:
    dataset = recognizer.load_dataset(args.data_dir)
    recognizer.train_with_holdout(dataset, args.examples)

    if not recognizer.holdouts:
        print(f"没有样例编号为 {args.examples} 的实例")
        return 1

    recognizer.recognize(recognizer.holdouts)

    correct = sum(1 for h in recognizer.holdouts if h.is_correct)
    for holdout in recognizer.holdouts:
        status = '正确' if holdout.is_correct else '错误'
        print(f"sub{holdout.subject_id:02d} ex{holdout.example_number:02d}: "
              f"实际 {describe_shape(holdout.actual_shape_id)} -> "
              f"识别 {describe_shape(holdout.recognized_shape_id)} "
              f"(距离 {holdout.recognized_distance:.4f}) {status}")

    print(f"\n训练耗时: {recognizer.time_to_train:.4f}s")
    print(f"准确率: {correct}/{len(recognizer.holdouts)} = {correct / len(recognizer.holdouts):.4f}")

    if args.debug:
        from utils.visualization import Visualizer
        visualizer = Visualizer()
        for template in recognizer.templates:
            visualizer.plot_template(template, output_dir / 'templates' / f'template_{template.shape_id:02d}.png')
    return 0


def run_recognize(recognizer: Recognizer, args, output_dir: Path) -> int:
    dataset = recognizer.load_dataset(args.data_dir)
    recognizer.train(dataset)

    instance = recognizer.load_instance(args.stroke_file)
    shape_id, distance = recognizer.recognize(instance)

    if shape_id == -1:
        print("无法识别：没有可用的模板")
        return 1

    print(f"识别结果: {describe_shape(shape_id)}")
    print(f"距离: {distance:.4f}")
    print(f"识别耗时: {instance.time_to_recognize * 1000:.3f}ms")
    if not recognizer.accepts(instance):
        print(f"距离超过阈值 {recognizer.params.recognition_distance_threshold}，结果不被接受")

    if args.debug:
        from utils.visualization import Visualizer
        visualizer = Visualizer()
        stem = Path(args.stroke_file).stem
        visualizer.plot_strokes(instance.strokes, output_dir / f'{stem}_strokes.png', title=stem)
        visualizer.plot_feature_maps(instance.features.values, output_dir / f'{stem}_features.png',
                                     title=f'{stem} features')
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
        params = config.to_params()
    except ConfigError as e:
        print(f"配置错误: {e}")
        return 2

    log_config = config.logging
    setup_logging(log_dir=log_config.get('log_dir'),
                  app_name=log_config.get('app_name', 'shape_recognizer'),
                  console_level=log_config.get('console_level', 'INFO'),
                  file_level=log_config.get('file_level', 'DEBUG'),
                  use_colors=log_config.get('use_colors', True),
                  use_json=log_config.get('use_json', False))
    logger = logging.getLogger('shape_recognizer')

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("笔迹形状识别器")
    print("=" * 60)
    print(f"命令: {args.command}")
    print(f"特征策略: {params.strategy}")
    print(f"输出目录: {output_dir}")
    print("=" * 60)

    recognizer = Recognizer(params)

    try:
        if args.command == 'cross-validate':
            return run_cross_validation(config, recognizer, args, output_dir)
        if args.command == 'holdout':
            return run_holdout(recognizer, args, output_dir)
        return run_recognize(recognizer, args, output_dir)
    except (OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"\n错误: {e}")
        if args.debug:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
