"""Create the schema, and optionally load the seed data and demo accounts.

    python scripts/init_db.py            # schema only
    python scripts/init_db.py --seed     # schema + seed.sql + demo users
    python scripts/init_db.py --seed-only
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.payroll_system.payroll_system.common.log import configure_logging
from src.payroll_system.payroll_system.database.bootstrap import (
    apply_schema,
    apply_seed_sql,
    ensure_demo_users,
    list_tables,
)

logger = logging.getLogger("init_db")

DATABASE_DIR = REPO_ROOT / "database"


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--seed", action="store_true", help="also load seed.sql and the demo accounts")
    group.add_argument("--seed-only", action="store_true", help="skip the schema, only seed")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    if not args.seed_only:
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        tables = list_tables(db_config)
        logger.info("Schema applied to %s (%s tables: %s)", target, len(tables), ", ".join(tables))

    if args.seed or args.seed_only:
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        logger.info("Seeded personnel types, deduction types, settings and demo users into %s", target)


if __name__ == "__main__":
    main()
