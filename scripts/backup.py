"""Dump the payroll database with `mysqldump` (MySQL client tools must be installed)."""

from __future__ import annotations

import argparse
import importlib
import logging
import os
import subprocess
import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.payroll_system.payroll_system.common.log import configure_logging

logger = logging.getLogger("backup")


def dump_command(db: dict) -> list[str]:
    return [
        "mysqldump",
        "--single-transaction",
        "--routines",
        f"--host={db['host']}",
        f"--port={db.get('port', 3306)}",
        f"--user={db['user']}",
        db["database"],
    ]


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--out-dir", default=str(REPO_ROOT / "backups"))
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db = settings.DB_CONFIG

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_file = out_dir / f"{db['database']}_{datetime.now():%Y%m%d_%H%M%S}.sql"

    # MYSQL_PWD keeps the password off the process list.
    env = dict(os.environ, MYSQL_PWD=str(db["password"]))
    try:
        with out_file.open("wb") as f:
            subprocess.run(dump_command(db), stdout=f, stderr=subprocess.PIPE, check=True, env=env)
    except FileNotFoundError:
        raise SystemExit("`mysqldump` not found. Install the MySQL client tools.")
    except subprocess.CalledProcessError as exc:
        out_file.unlink(missing_ok=True)
        raise SystemExit(f"mysqldump failed: {exc.stderr.decode(errors='replace').strip()}")
    logger.info("Backup written to %s", out_file)


if __name__ == "__main__":
    main()
