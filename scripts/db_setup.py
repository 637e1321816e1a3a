#!/usr/bin/env python3
"""
Database setup script for the Owaiken gateway.

Uses SQLAlchemy models as the SINGLE SOURCE OF TRUTH for schema.
All tables and indexes are defined in src/db/models.py.

Usage:
    python scripts/db_setup.py setup      # Create all tables
    python scripts/db_setup.py teardown   # Drop all tables (with confirmation)
    python scripts/db_setup.py reset      # Teardown + setup (full reset)
    python scripts/db_setup.py status     # Show current database state

Environment variables (from .env):
    - DATABASE_URL: asyncpg connection URL
      (or DATABASE_HOST / DATABASE_PORT / DATABASE_NAME / DATABASE_USER / DATABASE_PASSWORD)
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N]: ").strip().lower()
    return answer in ("y", "yes")


# =============================================================================
# COMMANDS
# =============================================================================

async def cmd_setup():
    """Create all tables defined in src/db/models.py."""
    from src.db.connection import db

    if not await db.test_connection():
        logger.error("Cannot reach the database; check DATABASE_URL")
        return False

    await db.create_tables()
    await db.close_all()
    print("Setup complete")
    return True


async def cmd_teardown(force: bool = False):
    """Drop all tables defined in src/db/models.py."""
    from src.db.connection import db

    if not force and not _confirm("This drops the users and usage_events tables. Continue?"):
        print("Aborted")
        return False

    await db.drop_tables()
    await db.close_all()
    print("Teardown complete")
    return True


async def cmd_reset(force: bool = False):
    """Drop and recreate all tables."""
    if not await cmd_teardown(force=force):
        return False
    return await cmd_setup()


async def cmd_status():
    """Show row counts for each table."""
    from sqlalchemy import func, select

    from src.db.connection import db
    from src.db.models import UserModel, UsageEventModel

    if not await db.test_connection():
        logger.error("Cannot reach the database; check DATABASE_URL")
        return False

    async with db.session() as session:
        for model in (UserModel, UsageEventModel):
            try:
                count = (await session.execute(select(func.count()).select_from(model))).scalar()
                print(f"  {model.__tablename__:<15} {count} rows")
            except Exception as e:
                print(f"  {model.__tablename__:<15} unavailable ({type(e).__name__})")
                await session.rollback()

    await db.close_all()
    return True


def main():
    parser = argparse.ArgumentParser(
        description="Database setup for the Owaiken gateway",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  setup      Create all tables
  teardown   Drop all tables
  reset      Drop and recreate all tables
  status     Show row counts per table

Schema is defined in: src/db/models.py (SINGLE SOURCE OF TRUTH)
        """
    )

    parser.add_argument(
        "command",
        choices=["setup", "teardown", "reset", "status"],
        help="Command to execute"
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Skip confirmation prompts for destructive operations"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.command == "setup":
        ok = asyncio.run(cmd_setup())
    elif args.command == "teardown":
        ok = asyncio.run(cmd_teardown(force=args.force))
    elif args.command == "reset":
        ok = asyncio.run(cmd_reset(force=args.force))
    else:
        ok = asyncio.run(cmd_status())

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
