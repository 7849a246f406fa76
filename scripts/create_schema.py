#!/usr/bin/env python
"""Create the payroll tables.

Usage:
    python scripts/create_schema.py
    python scripts/create_schema.py --database-url postgresql+asyncpg://...
    python scripts/create_schema.py --dry-run
"""

from __future__ import annotations

import argparse
import asyncio

from sqlalchemy.schema import CreateTable

from hrhub_payroll.config import get_settings
from hrhub_payroll.database import get_engine
from hrhub_payroll.models import Base


async def create_schema(database_url: str) -> None:
    engine = get_engine(database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create payroll tables")
    parser.add_argument("--database-url", help="Async database URL (default: DATABASE_URL)")
    parser.add_argument("--dry-run", action="store_true", help="Print DDL without executing")
    args = parser.parse_args()

    database_url = args.database_url or get_settings().database_url

    if args.dry_run:
        engine = get_engine(database_url)
        for table in Base.metadata.sorted_tables:
            print(f"{CreateTable(table).compile(dialect=engine.dialect)};")
        return

    print(f"Target database: {database_url.split('@')[1] if '@' in database_url else database_url}")
    asyncio.run(create_schema(database_url))
    print(f"Created {len(Base.metadata.sorted_tables)} tables")


if __name__ == "__main__":
    main()
