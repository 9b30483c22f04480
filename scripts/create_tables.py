#!/usr/bin/env python
"""Create every portal table in the database from `DATABASE_URL`.

Usage:
  python scripts/create_tables.py

Production databases should be managed with `alembic upgrade head` instead.
"""
import sys
from pathlib import Path

# Ensure project root is on sys.path so `portal` package can be imported
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from portal.config import get_settings
from portal.database import create_tables


def main():
    settings = get_settings()
    create_tables(settings.DATABASE_URL)
    print(f"Tables created for {settings.DATABASE_URL.split('@')[-1]}")


if __name__ == "__main__":
    main()
