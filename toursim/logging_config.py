# toursim/logging_config.py
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d:%(funcName)s - %(message)s'


def setup_logging(level: int = logging.INFO, log_dir: Optional[str] = None) -> logging.Logger:
    """
    Configure logging for the engine and its web service.

    Args:
        level: Level for the ``toursim`` logger tree.
        log_dir: Directory for a rotating ``toursim.log``; console only when omitted.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    logger = logging.getLogger("toursim")
    logger.setLevel(level)

    # setup_logging may be called again by reloaded apps; don't stack handlers
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "toursim.log",
            maxBytes=5_242_880,  # 5MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
