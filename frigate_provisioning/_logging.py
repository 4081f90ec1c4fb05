# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import logging.handlers
from pathlib import Path


def init_logging(log_file: Path):
    """Everything goes to the log file; the console shows the same from INFO.

    The previous run's log is kept as a numbered backup.
    """
    logging.getLogger().setLevel(logging.DEBUG)
    _init_file_logging(log_file)
    _init_stream_logging()


def _init_file_logging(log_file: Path):
    log_file.parent.mkdir(exist_ok=True, parents=True)
    existed = log_file.exists()
    file_handler = logging.handlers.RotatingFileHandler(log_file, backupCount=6)
    if existed:
        file_handler.doRollover()
    file_handler.setFormatter(logging.Formatter('%(asctime)s %(name)s %(levelname)s %(message)s'))
    file_handler.setLevel(logging.DEBUG)
    logging.getLogger().addHandler(file_handler)


def _init_stream_logging():
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter('%(message)s'))
    stream_handler.setLevel(logging.INFO)
    logging.getLogger().addHandler(stream_handler)
