#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Manual DB migration helper.

Usage: python db_migrate.py [path/to/sekundebrain.sqlite3]
"""
from __future__ import annotations

import asyncio
import sys

from sekundebrain.db import DB_PATH, init_db
from sekundebrain.logs import setup_logging


async def migrate(db_path: str) -> None:
    applied = await init_db(db_path)
    for stmt in applied:
        print(stmt)
    if not applied:
        print(f"{db_path}: already up to date")


if __name__ == "__main__":
    setup_logging(level="WARNING")
    asyncio.run(migrate(sys.argv[1] if len(sys.argv) > 1 else DB_PATH))
