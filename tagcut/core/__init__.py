"""Core domain types shared by every layer."""

from .config import Config, ConfigError, load_config, load_config_or_default
from .deadline import Deadline
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_config",
    "load_config_or_default",
    # deadline
    "Deadline",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
