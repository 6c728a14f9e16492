# -*- coding: utf-8 -*-
"""
日志工具

提供日志配置与格式化功能
包括彩色控制台输出、轮转日志文件以及带上下文的日志记录
"""

import logging
import logging.handlers
import os
import sys
import json
from datetime import datetime
from typing import Dict, List, Optional, Any, Union

import colorama
from colorama import Fore, Back, Style

# Windows 控制台启用ANSI转义，其他平台不替换 sys.stdout
colorama.just_fix_windows_console()


# LogRecord 自带的字段，JSON 输出时不重复写入
_RESERVED_RECORD_FIELDS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'exc_info', 'exc_text',
    'stack_info', 'taskName', 'message', 'asctime',
}


def _to_level(level: Union[str, int]) -> int:
    """把字符串日志级别转换为数值"""
    if isinstance(level, str):
        value = logging.getLevelName(level.upper())
        if not isinstance(value, int):
            raise ValueError(f"Unknown log level: {level}")
        return value
    return level


class ColoredFormatter(logging.Formatter):
    """
    彩色日志格式化器

    为不同级别的日志添加颜色
    """

    # 颜色映射
    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Back.WHITE + Style.BRIGHT
    }

    def __init__(self, fmt=None, datefmt=None, use_colors=True, stream=None):
        """
        初始化彩色格式化器

        Args:
            fmt (str): 日志格式
            datefmt (str): 日期格式
            use_colors (bool): 是否使用颜色
            stream: 输出流，用于判断是否为终端
        """
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors
        self.stream = stream if stream is not None else sys.stdout

    def format(self, record):
        log_message = super().format(record)

        # 仅在终端中着色
        isatty = getattr(self.stream, 'isatty', None)
        if self.use_colors and isatty is not None and isatty():
            color = self.COLORS.get(record.levelname)
            if color:
                log_message = f"{color}{log_message}{Style.RESET_ALL}"

        return log_message


class JsonFormatter(logging.Formatter):
    """
    JSON格式化器

    每条记录输出为一行JSON，上下文字段一并写入
    """

    def format(self, record):
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # 额外字段（例如 ContextLogger 注入的上下文）
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_FIELDS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, ensure_ascii=False, default=str)


class LogManager:
    """
    日志管理器

    创建处理器并挂载到日志记录器上
    """

    def __init__(self):
        self.loggers = {}
        self.handlers = {}
        self.default_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        self.default_date_format = '%Y-%m-%d %H:%M:%S'

    def create_logger(self, name: str, level: Union[str, int] = 'INFO',
                      handlers: Optional[List[str]] = None) -> logging.Logger:
        """
        创建日志记录器

        Args:
            name (str): 日志记录器名称，空字符串表示根记录器
            level (Union[str, int]): 日志级别
            handlers (Optional[List[str]]): 处理器名称列表

        Returns:
            logging.Logger: 日志记录器
        """
        if name in self.loggers:
            return self.loggers[name]

        logger = logging.getLogger(name)
        logger.setLevel(_to_level(level))

        # 替换之前由本管理器之外挂载的处理器
        for handler in list(logger.handlers):
            logger.removeHandler(handler)

        for handler_name in handlers or []:
            if handler_name in self.handlers:
                logger.addHandler(self.handlers[handler_name])

        self.loggers[name] = logger
        return logger

    def create_console_handler(self, name: str = 'console',
                               level: Union[str, int] = 'INFO',
                               use_colors: bool = True,
                               format_string: Optional[str] = None) -> logging.Handler:
        """
        创建控制台处理器

        Args:
            name (str): 处理器名称
            level (Union[str, int]): 日志级别
            use_colors (bool): 是否使用颜色
            format_string (Optional[str]): 格式字符串

        Returns:
            logging.Handler: 创建的处理器
        """
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(_to_level(level))

        fmt = format_string or self.default_format
        if use_colors:
            formatter = ColoredFormatter(fmt, self.default_date_format, stream=sys.stdout)
        else:
            formatter = logging.Formatter(fmt, self.default_date_format)
        handler.setFormatter(formatter)

        self.handlers[name] = handler
        return handler

    def create_file_handler(self, name: str, file_path: str,
                            level: Union[str, int] = 'INFO',
                            max_bytes: int = 10 * 1024 * 1024,
                            backup_count: int = 5,
                            encoding: str = 'utf-8',
                            format_string: Optional[str] = None,
                            use_json: bool = False) -> logging.Handler:
        """
        创建轮转文件处理器

        Args:
            name (str): 处理器名称
            file_path (str): 文件路径
            level (Union[str, int]): 日志级别
            max_bytes (int): 最大文件大小
            backup_count (int): 备份文件数量
            encoding (str): 文件编码
            format_string (Optional[str]): 格式字符串
            use_json (bool): 是否使用JSON格式

        Returns:
            logging.Handler: 创建的处理器
        """
        log_dir = os.path.dirname(file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            file_path, maxBytes=max_bytes, backupCount=backup_count,
            encoding=encoding
        )
        handler.setLevel(_to_level(level))

        if use_json:
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(format_string or self.default_format,
                                          self.default_date_format)
        handler.setFormatter(formatter)

        self.handlers[name] = handler
        return handler

    def setup_default_logging(self, log_dir: Optional[str] = 'logs',
                              app_name: str = 'app',
                              console_level: str = 'INFO',
                              file_level: str = 'DEBUG',
                              use_colors: bool = True,
                              use_json: bool = False) -> logging.Logger:
        """
        设置默认日志配置

        处理器挂在根记录器上，使各模块通过 logging.getLogger(__name__)
        得到的记录器都能输出

        Args:
            log_dir (str, optional): 日志目录，为 None 时只输出到控制台
            app_name (str): 应用名称
            console_level (str): 控制台日志级别
            file_level (str): 文件日志级别
            use_colors (bool): 是否使用颜色
            use_json (bool): 文件日志是否使用JSON格式

        Returns:
            logging.Logger: 应用日志记录器
        """
        handler_names = ['console']
        self.create_console_handler('console', console_level, use_colors)

        if log_dir:
            self.create_file_handler(
                'file', os.path.join(log_dir, f'{app_name}.log'),
                file_level, use_json=use_json
            )
            self.create_file_handler(
                'error_file', os.path.join(log_dir, f'{app_name}_error.log'),
                'ERROR', use_json=use_json
            )
            handler_names += ['file', 'error_file']

        self.create_logger('', 'DEBUG', handler_names)
        return logging.getLogger(app_name)


class ContextLogger:
    """
    上下文日志记录器

    每条日志自动附带上下文字段，例如当前交叉验证的测试者ID
    """

    def __init__(self, logger: logging.Logger, context: Dict[str, Any] = None):
        """
        初始化上下文日志记录器

        Args:
            logger (logging.Logger): 基础日志记录器
            context (Dict[str, Any]): 上下文信息
        """
        self.logger = logger
        self.context = context or {}

    def _log_with_context(self, level: int, msg: str, *args, **kwargs):
        extra = dict(kwargs.get('extra') or {})
        extra.update(self.context)
        kwargs['extra'] = extra

        if self.context:
            prefix = ' '.join(f"{k}={v}" for k, v in self.context.items())
            msg = f"[{prefix}] {msg}"

        self.logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        """记录DEBUG级别日志"""
        self._log_with_context(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        """记录INFO级别日志"""
        self._log_with_context(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        """记录WARNING级别日志"""
        self._log_with_context(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        """记录ERROR级别日志"""
        self._log_with_context(logging.ERROR, msg, *args, **kwargs)


# 便捷函数
def setup_logging(log_dir: Optional[str] = 'logs', app_name: str = 'app',
                  console_level: str = 'INFO', file_level: str = 'DEBUG',
                  use_colors: bool = True, use_json: bool = False) -> logging.Logger:
    """
    快速设置日志配置

    Args:
        log_dir (str, optional): 日志目录
        app_name (str): 应用名称
        console_level (str): 控制台日志级别
        file_level (str): 文件日志级别
        use_colors (bool): 是否使用颜色
        use_json (bool): 是否使用JSON格式

    Returns:
        logging.Logger: 应用日志记录器
    """
    log_manager = LogManager()
    return log_manager.setup_default_logging(
        log_dir, app_name, console_level, file_level, use_colors, use_json
    )


def get_context_logger(logger: logging.Logger, **context) -> ContextLogger:
    """
    获取上下文日志记录器

    Args:
        logger (logging.Logger): 基础日志记录器
        **context: 上下文信息

    Returns:
        ContextLogger: 上下文日志记录器
    """
    return ContextLogger(logger, context)
