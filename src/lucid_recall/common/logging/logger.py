# shared service logger, imported everywhere as `from lucid_recall.common.logging.logger import logger`

import logging
import os
import sys

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("lucid_recall")

# NOTE: guard against duplicate handlers when the module is re-imported (e.g. uvicorn reload)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)

logger.setLevel(LOG_LEVEL)
logger.propagate = False
