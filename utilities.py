import inspect
import os
import time
from datetime import datetime, timezone

import psutil
from rich import print as _print

# Mapping of logType to symbols
LOG_TYPE_SYMBOLS = {
    'SUCCESS': ('^^^', '^^^'),
    'FAILURE': ('###', '###'),
    'STATE': ('~~~', '~~~'),
    'INFO': ('---', '---'),
    'IMPORTANT': ('===', '==='),
    'HEADER': ('===', '==='),
    'EXCEPTION': ('!!!', '!!!'),
    'WARNING': ('(((', ')))'),
    'DEBUG': ('[[[', ']]]'),
    'ATTEMPT': ('???', '???'),
    'STARTING': ('>>>', '>>>'),
    'PROGRESS': ('vvv', 'vvv'),
    'COMPLETED': ('<<<', '<<<'),
}

# Mapping of logType to rich styles
LOG_TYPE_STYLES = {
    'SUCCESS': 'green',
    'FAILURE': 'red bold',
    'STATE': 'cyan',
    'INFO': 'blue',
    'IMPORTANT': 'magenta',
    'HEADER': 'magenta bold',
    'EXCEPTION': 'red bold',
    'WARNING': 'yellow',
    'DEBUG': 'white',
    'ATTEMPT': 'cyan',
    'STARTING': 'green',
    'PROGRESS': 'blue',
    'COMPLETED': 'green',
}

DEBUG_ENV_VAR = "COMPACTOR_DEBUG"


def debug_enabled() -> bool:
    """True when DEBUG lines should be printed."""
    return os.environ.get(DEBUG_ENV_VAR, "").lower() not in ("", "0", "false", "no")


def Print(logType: str, message: str) -> None:
    """
    Prints a log message with timestamp, calling function name, symbols wrapping the logType, and the message.

    DEBUG messages are only shown when COMPACTOR_DEBUG is set.
    """
    logTypeUpper = logType.upper()
    if logTypeUpper == 'DEBUG' and not debug_enabled():
        return

    try:
        timestamp = datetime.fromtimestamp(time.time(), tz=timezone.utc).isoformat(timespec='microseconds')

        before_symbol, after_symbol = LOG_TYPE_SYMBOLS.get(logTypeUpper, ('', ''))
        formattedLogType = f"{before_symbol} {logTypeUpper} {after_symbol}"

        style = LOG_TYPE_STYLES.get(logTypeUpper, '')
        if style:
            formattedLogType = f"[{style}]{formattedLogType}[/{style}]"

        # Name of the function that called Print
        caller = inspect.currentframe().f_back
        function_name = caller.f_code.co_name if caller is not None else '?'

        _print(f"{timestamp} {formattedLogType} {function_name.ljust(32)} {message}")

    except Exception as e:
        print(f"Something went wrong when attempting to print.\nError: {e}")


def human_size(num_bytes: float) -> str:
    """Format a byte count as B/KB/MB/GB."""
    for unit in ["B", "KB", "MB", "GB"]:
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:3.1f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} TB"


def CPU_and_Mem_usage() -> str:
    """
    Returns a string with the CPU usage and memory usage of the current process.
    """
    current_process = psutil.Process(os.getpid())
    cpu_usage = current_process.cpu_percent(interval=None)
    memory_usage_mb = current_process.memory_info().rss / (1024 ** 2)
    return f"CPU Usage: {cpu_usage}%, Process Memory Usage: {memory_usage_mb:.2f} MB"
