#!/usr/bin/env python

"""
Shovel Project Tracker - Main Entry Point

A small web application for logging daily hours and travel kilometers per
project and team member, with filtered, printable reports.

Usage:
    python main.py

Configuration:
    - SHOVEL_* environment variables or a .env file (see shovel_tracker/infra/config.py)
    - config/settings.yaml for report preferences
"""

import logging
import sys
from pathlib import Path

import uvicorn

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from shovel_tracker.infra.config import get_settings
from shovel_tracker.web import create_app


def main():
    """Main entry point"""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
