"""
Logging setup for hpx-deploy
"""

import logging
import sys
from typing import Any, Dict, List, Optional

from hpx_deploy import config

LOGGER_NAME = 'hpx_deploy'
LOG_FORMAT = '[%(program)s] %(levelname)s: %(message)s'
SENSITIVE_PARAMETERS = ('RedshiftPassword',)


class ProgramNameFilter(logging.Filter):
    """Stamp every record with the program name used in the log prefix"""

    def __init__(self, program: str):
        super().__init__()
        self.program = program

    def filter(self, record: logging.LogRecord) -> bool:
        record.program = self.program
        return True


def get_logger(program: str = 'hpx-deploy', level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return the package logger.

    Module loggers (``logging.getLogger(__name__)``) inside the package
    propagate to this one, so calling it once per process is enough.

    Args:
        program: name shown in the ``[program]`` prefix
        level: log level name, defaults to ``LOG_LEVEL``

    Returns:
        logging.Logger: the configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(ProgramNameFilter(program))

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO))
    logger.propagate = False
    return logger


def sanitize_parameters(parameters: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Redact secret values from a CloudFormation parameter list before logging"""
    return [
        {**parameter, 'ParameterValue': '***REDACTED***'}
        if parameter.get('ParameterKey') in SENSITIVE_PARAMETERS else parameter
        for parameter in parameters
    ]
