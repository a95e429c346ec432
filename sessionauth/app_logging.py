import logging
from typing import Union

from pythonjsonlogger import jsonlogger


def setup_logger(level: Union[int, str] = logging.INFO,
                 json: bool = True) -> logging.Logger:
    logHandler = logging.StreamHandler()
    if json:
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s'
        )
    logHandler.setFormatter(formatter)
    logger = logging.getLogger()
    logger.addHandler(logHandler)
    logger.setLevel(level)
    return logger
