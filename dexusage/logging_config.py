# ==============================================
# Logging Setup
# ==============================================
#
# Library modules only create loggers; the CLI installs handlers here.
#
# ==============================================

import logging
import logging.handlers
import os

from dexusage.config import LoggingConfig

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d in %(funcName)s()] - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(config: LoggingConfig) -> None:
    """
    Install handlers on the package logger.

    Args:
        config: Level and optional log file
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    detailed_formatter = logging.Formatter(DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    console_formatter = logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S')

    package_logger = logging.getLogger('dexusage')
    package_logger.setLevel(level)
    package_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(console_formatter)
    package_logger.addHandler(console_handler)

    if config.log_file:
        log_dir = os.path.dirname(config.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.log_file,
            maxBytes=5*1024*1024,  # 5MB
            backupCount=3,
            encoding='utf-8'
        )
        file_handler.setFormatter(detailed_formatter)
        package_logger.addHandler(file_handler)
