import logging

import uvicorn

import config
from utils.logging_config import setup_logging

# Initialize centralized logging configuration before the app is imported
setup_logging()

from web.app import app


def main() -> None:
    logging.info(f"[run.py] Serving {config.APP_NAME} on {config.WEBAPP_HOST}:{config.WEBAPP_PORT}")
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT, log_config=None)


if __name__ == '__main__':
    main()
