# warehouse_server/app/main.py
import logging
import socket

import uvicorn

from .config import HOST, LOG_LEVEL, PORT
from .db import init_db

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level_name: str = LOG_LEVEL) -> None:
    """Root logging from LOG_LEVEL with one concise format."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        for handler in root.handlers:
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
        return
    logging.basicConfig(level=level, format=LOG_FORMAT)


def get_local_ip():
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.connect(('8.8.8.8', 80))
        ip = s.getsockname()[0]
    except OSError:
        ip = '127.0.0.1'
    finally:
        s.close()
    return ip


def run():
    configure_logging()
    init_db()
    logger.info("parcel warehouse on http://%s:%d", get_local_ip(), PORT)
    uvicorn.run('warehouse_server.app.api:app', host=HOST, port=PORT,
                log_level=LOG_LEVEL.lower(), log_config=None)


if __name__ == '__main__':
    run()
