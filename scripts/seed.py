#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from notes_saas.core.config import DATABASE_URL, IS_PROD  # noqa: E402
from notes_saas.core.database import Base, SessionLocal, engine  # noqa: E402
from notes_saas.services.seed import DEMO_PASSWORD, seed_demo_data  # noqa: E402
import notes_saas.models  # noqa: E402,F401


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the demo tenants (acme, globex) and their users.")
    parser.add_argument("--password", default=DEMO_PASSWORD, help="Password for every demo user")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Allow running against a production environment",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if IS_PROD and not args.force:
        print("Refusing to seed demo data in production. Use --force to override.")
        return 1

    if DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        created = seed_demo_data(db, password=args.password)
    finally:
        db.close()

    print(f"Seed complete: {created['tenants']} tenant(s), {created['users']} user(s) created.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
