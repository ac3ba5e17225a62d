import os

import uvicorn
from netbird_toggle.logging_utility import logger


if __name__=='__main__':
    logger.info("Starting NetBird toggle panel")
    host = os.environ.get("NETBIRD_TOGGLE_HOST", "127.0.0.1")
    port = int(os.environ.get("NETBIRD_TOGGLE_PORT", "8000"))
    uvicorn.run("netbird_toggle.main:app", host=host, port=port)
