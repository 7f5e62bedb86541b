"""
Loguru setup for AltFinder processes.

One console sink plus an optional rotating file sink. ``quiet`` is meant
for console tools whose stdout is the product: only warnings and errors
reach stderr.
"""
import os
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def console_level(debug_mode: bool, quiet: bool = False) -> str:
    if debug_mode:
        return "DEBUG"
    return "WARNING" if quiet else "INFO"


def setup_logging(debug_mode: bool = True, log_dir: str = "logs", log_to_file: bool = True,
                  quiet: bool = False):
    """
    Replace every loguru sink with the AltFinder ones.

    Args:
        debug_mode: Console shows DEBUG (overrides ``quiet``)
        log_dir: Directory for ``altfinder_<time>.log`` files
        log_to_file: Add the file sink (always at DEBUG)
        quiet: Console shows WARNING and above only
    """
    logger.remove()
    level = console_level(debug_mode, quiet)
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    if log_to_file:
        os.makedirs(log_dir, exist_ok=True)
        logger.add(os.path.join(log_dir, "altfinder_{time}.log"), rotation="10 MB", retention="1 week", level="DEBUG")

    logger.debug(f"Logging initialized (console={level}, file={'on' if log_to_file else 'off'})")
