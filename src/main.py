import logging

import uvicorn

from config.config import Config
from config.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def main():
    from pinger import app

    logger.info(f"Listening on {Config.PORT}")
    # logging is already configured; keep uvicorn from replacing it
    uvicorn.run(app, host="0.0.0.0", port=Config.PORT, log_config=None)


if __name__ == "__main__":
    main()
