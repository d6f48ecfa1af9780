import os
import sys
from loguru import logger

_FORMAT_TIME = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
_FORMAT_PLAIN = (
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(level=None, show_time=True, log_file=None):
    """Configure loguru for the solver.

    Parameters
    ----------
    level : str, optional
        Logging level (DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL).
        Defaults to the EULER2D_LOG_LEVEL environment variable, else INFO.
    show_time : bool
        Whether to show timestamps in the console output.
    log_file : str or Path, optional
        Additional plain-text log file (always timestamped, DEBUG level).
    """
    if level is None:
        level = os.environ.get("EULER2D_LOG_LEVEL", "INFO")

    logger.remove()
    logger.add(sys.stderr, format=_FORMAT_TIME if show_time else _FORMAT_PLAIN,
               level=level, colorize=True)

    if log_file is not None:
        logger.add(str(log_file), format=_FORMAT_TIME, level="DEBUG", colorize=False)

    return logger


# Default setup
setup_logging()
