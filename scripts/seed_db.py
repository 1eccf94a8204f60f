from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.checkin_tracker.checkin_tracker.database.bootstrap import ensure_demo_admin


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a demo admin that can log in with a local PIN.")
    parser.add_argument("--pin", default="0000")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    ensure_demo_admin(db_config, pin=args.pin)

    print(
        "OK: Demo admin ready -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
