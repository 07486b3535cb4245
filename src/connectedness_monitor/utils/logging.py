"""
Logging configuration for Connectedness Monitor.

Console output goes to stdout; an optional run log file always records
DEBUG messages together with the process that emitted them, since window
tasks may run in worker processes.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

from ..core.exceptions import format_exception_chain


PACKAGE_LOGGER = 'connectedness_monitor'

CONSOLE_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
QUIET_FORMAT = '[%(levelname)s] %(message)s'
RUN_LOG_FORMAT = '%(asctime)s [%(levelname)s] %(processName)s %(name)s (%(filename)s:%(lineno)d): %(message)s'

# Libraries the analysis calls into; kept at WARNING so they do not drown
# the per-window debug output.
QUIET_LOGGERS = (
    'matplotlib',
    'PIL',
    'openpyxl',
    'statsmodels',
    'concurrent.futures',
)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    quiet: bool = False,
) -> None:
    """
    Configure the package logger and the root handlers.

    Args:
        level: Console level for the package logger
        log_file: Optional run log, written at DEBUG with process names
        format_string: Console format override
        quiet: Warnings and errors only, without timestamps
    """
    if quiet:
        level = logging.WARNING
    fmt = format_string or (QUIET_FORMAT if quiet else CONSOLE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(fmt))
    console_handler.setLevel(level)
    handlers = [console_handler]

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(RUN_LOG_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)

    # the run log needs the package's debug records even when the console is quiet
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if log_file else level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger under the package namespace; ``__name__`` of a package module is kept as is."""
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{PACKAGE_LOGGER}.{name}')


def log_exception(logger: logging.Logger, exc: BaseException, context: str = "") -> None:
    """
    Log an error with its cause chain and traceback.

    A failed window surfaces as WindowComputationError raised from the
    worker's exception, so the chain names both the window and the cause.
    """
    message = format_exception_chain(exc)
    if context:
        message = f"{context}: {message}"
    logger.error(message, exc_info=(type(exc), exc, exc.__traceback__))


class LogContext:
    """
    Times a stage of the run and logs its start and end.

    Example:
        with LogContext(logger, "Aggregating 49 windows"):
            aggregator.aggregate(results)
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.INFO):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.elapsed: Optional[float] = None
        self._start: Optional[float] = None

    def __enter__(self) -> 'LogContext':
        self._start = time.perf_counter()
        self.logger.log(self.level, "%s...", self.operation)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.elapsed = time.perf_counter() - self._start

        if exc_type is None:
            self.logger.log(self.level, "%s completed in %.2fs", self.operation, self.elapsed)
        else:
            self.logger.error("%s failed after %.2fs: %s", self.operation, self.elapsed, exc_val)

        return False


class ProgressLogger:
    """
    Progress reporter that overwrites the same console line.

    Instances are callables accepting the completed fraction, so they can be
    passed directly as a ``progress_callback``.

    Example:
        progress = ProgressLogger(logger, description="Rolling windows")
        orchestrator.execute(returns, progress_callback=progress)
        progress.finish()
    """

    def __init__(
        self,
        logger: logging.Logger,
        description: str = "Processing",
        update_step: float = 0.05,
        stream=None,
    ):
        self.logger = logger
        self.description = description
        self.update_step = update_step
        self.stream = stream if stream is not None else sys.stdout
        self.fraction = 0.0
        self._last_reported = -1.0

    def __call__(self, fraction: float) -> None:
        self.update(fraction)

    def update(self, fraction: float) -> None:
        """Update progress."""
        self.fraction = min(max(fraction, 0.0), 1.0)
        if self.fraction - self._last_reported >= self.update_step or self.fraction >= 1.0:
            self._last_reported = self.fraction
            self.stream.write(f"\r  {self.description}... {self.fraction * 100:.0f}%")
            self.stream.flush()

    def finish(self, message: Optional[str] = None) -> None:
        """Complete progress logging."""
        self.stream.write("\n")
        self.logger.info(message or f"{self.description} completed")
