# -*- coding: utf-8 -*-
"""
性能工具

提供时间测量功能
训练、识别耗时以及各阶段日志中的耗时均由这里计算
"""

import time
import functools
import logging
from contextlib import contextmanager
from typing import Callable, Optional


class Timer:
    """
    计时器类

    提供高精度时间测量功能
    """

    def __init__(self, name: str = "Timer"):
        """
        初始化计时器

        Args:
            name (str): 计时器名称
        """
        self.name = name
        self.start_time = None
        self.end_time = None
        self.elapsed_time = 0.0
        self.is_running = False

    def start(self):
        """
        开始计时
        """
        if self.is_running:
            raise RuntimeError(f"Timer '{self.name}' is already running")

        self.start_time = time.perf_counter()
        self.is_running = True

    def stop(self) -> float:
        """
        停止计时

        Returns:
            float: 经过的时间（秒）
        """
        if not self.is_running:
            raise RuntimeError(f"Timer '{self.name}' is not running")

        self.end_time = time.perf_counter()
        self.elapsed_time = self.end_time - self.start_time
        self.is_running = False

        return self.elapsed_time

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()


def timeit(func: Callable = None, *, name: str = None, logger: Optional[logging.Logger] = None):
    """
    计时装饰器

    耗时以DEBUG级别写入日志

    Args:
        func (Callable): 被装饰的函数
        name (str): 自定义名称
        logger (logging.Logger): 日志记录器，默认为被装饰函数所在模块的记录器

    Returns:
        装饰后的函数
    """
    def decorator(f):
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            timer_name = name or f.__qualname__

            with Timer(timer_name) as timer:
                result = f(*args, **kwargs)

            (logger or logging.getLogger(f.__module__)).debug(
                f"{timer_name} took {timer.elapsed_time:.4f} seconds")
            return result

        return wrapper

    if func is None:
        return decorator
    else:
        return decorator(func)


@contextmanager
def measure_time(name: str = "Operation", logger: Optional[logging.Logger] = None):
    """
    时间测量上下文管理器

    Args:
        name (str): 操作名称
        logger (logging.Logger): 日志记录器

    Yields:
        Timer: 正在运行的计时器，退出后可读取 elapsed_time
    """
    timer = Timer(name)
    timer.start()
    try:
        yield timer
    finally:
        timer.stop()
        (logger or logging.getLogger(__name__)).info(
            f"{name} took {timer.elapsed_time:.4f} seconds")
