from .clock import file_timestamp, get_current_time
from .locks import KeyedLock
from .logger import Logger, log_exec
from .retry import exponential_backoff, linear_backoff, retry_async

__all__ = [
    "Logger",
    "log_exec",
    "KeyedLock",
    "retry_async",
    "linear_backoff",
    "exponential_backoff",
    "get_current_time",
    "file_timestamp",
]
