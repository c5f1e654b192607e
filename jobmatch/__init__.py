#!filepath: jobmatch/__init__.py

from .utils.logger import Logging, logs
from .utils.retry import Retry
from .utils.path import PathManager
from .config.app_config import AppConfig

# alias 简化调用
retry = Retry
path = PathManager

__all__ = [
    "logs", "Logging",
    "retry",
    "path",
    "AppConfig",
]
