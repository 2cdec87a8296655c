"""Database chores for local and staging setups.

Usage: python scripts/manage_db.py {init,seed,tables}
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from field_attendance.database.bootstrap import apply_schema, apply_seed_sql, list_tables

SQL_DIR = REPO_ROOT / "database"


def _target(db_config: dict) -> str:
    return f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("command", choices=["init", "seed", "tables"])
    args = parser.parse_args()

    load_dotenv(override=False)
    db_config = dict(importlib.import_module(get_settings_module()).DB_CONFIG)

    if args.command == "init":
        count = apply_schema(db_config, schema_path=SQL_DIR / "schema.sql")
        print(f"schema.sql: {count} statements -> {_target(db_config)}")
    elif args.command == "seed":
        count = apply_seed_sql(db_config, seed_path=SQL_DIR / "seed.sql")
        print(f"seed.sql: {count} statements -> {_target(db_config)} (field-north, worker-1, esp32-gate-1)")

    for name in list_tables(db_config):
        print(f"  {name}")


if __name__ == "__main__":
    main()
