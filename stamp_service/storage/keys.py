# stamp_service/storage/keys.py
from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone

_UNSAFE = re.compile(r"[^a-zA-Z0-9._-]+")


def utc_day() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def safe_filename(name: str | None) -> str:
    name = _UNSAFE.sub("-", (name or "").strip()).strip("-_.")
    if not name:
        name = "stamped"
    if not name.lower().endswith(".pdf"):
        name += ".pdf"
    return name


def stamped_key(filename: str | None, stamp_id: str | None = None) -> str:
    # stamped/YYYY-MM-DD/<uuid>-<filename>.pdf
    stamp_id = stamp_id or uuid.uuid4().hex
    return f"stamped/{utc_day()}/{stamp_id}-{safe_filename(filename)}"
