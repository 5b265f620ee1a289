#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from notes_saas.core.database import SessionLocal  # noqa: E402
from notes_saas.services.tokens import purge_expired_refresh_tokens  # noqa: E402
import notes_saas.models  # noqa: E402,F401


def main() -> int:
    db = SessionLocal()
    try:
        deleted = purge_expired_refresh_tokens(db)
    finally:
        db.close()

    print(f"Removed {deleted} expired refresh token(s).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
