"""
Script to run Alembic migrations with environment variables from .env.

Usage: python -m talent_backend.run_migrations
"""

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> int:
    project_root = Path(__file__).parent.parent.absolute()
    env_file = project_root / ".env"
    if env_file.exists():
        logger.info(f"Loading environment variables from {env_file}")
        load_dotenv(dotenv_path=env_file)
    else:
        logger.warning(f".env file not found at {env_file}")

    # Settings are read at import time, so import after loading .env
    from talent_backend.database import run_migrations

    return 0 if run_migrations() else 1


if __name__ == "__main__":
    sys.exit(main())
