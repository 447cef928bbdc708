#!/usr/bin/env python3
"""
k3s UI backend server.
"""

import uvicorn
from dotenv import load_dotenv

load_dotenv()

from k3sui.config import get_settings
from k3sui.core.logging import setup_logging

# Use the application's logging setup instead of uvicorn's default log_config
setup_logging()

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "k3sui.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_debug,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
