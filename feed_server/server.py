#!/usr/bin/env python3
"""
Learning Feed Recommender server entrypoint.

    python -m feed_server.server
"""

import uvicorn

from .app import app
from .config import get_config

if __name__ == "__main__":
    config = get_config()
    uvicorn.run(app, host=config.host, port=config.port)
