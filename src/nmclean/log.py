"""Logging initialization using loguru."""

from pathlib import Path

from loguru import logger

from nmclean.config import expand_path


def init_logging(log_dir: str = "~/.nmclean/logs", level: str = "INFO") -> Path | None:
    """
    Send log records to a rotating file under ``log_dir``.

    The default stderr sink is removed because the TUI owns the terminal.
    Worker threads log through an enqueued sink.

    Returns:
        The log directory, or None if it could not be created (logging is
        then disabled)
    """
    logger.remove()

    log_path = expand_path(log_dir)
    try:
        log_path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return None

    logger.add(
        str(log_path / "nmclean_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )
    return log_path
