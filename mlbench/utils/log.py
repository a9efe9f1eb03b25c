import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def setup_logging(log_dir: Optional[Path] = None, name: str = "mlbench",
                  level: str = "INFO") -> Optional[Path]:
    """
    Initializes logging to console and, when ``log_dir`` is given, to
    ``{log_dir}/{name}.log``.

    Existing handlers on the root logger are removed so repeated calls from
    scripts do not duplicate output.

    Returns:
        Path to the log file, or None when logging only to console.
    """
    fmt = logging.Formatter(LOG_FORMAT)
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Clean existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(fmt)
    logger.addHandler(stream_handler)

    log_file = None
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"{name}.log"
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)

    return log_file
