# tools/seed_chatbot_knowledge.py
"""
Seed the chatbot_knowledge table with the BRAINNOVA FAQ corpus.

  1) From backend root, run:
     $ export SUPABASE_URL="https://xxxx.supabase.co"
     $ export SUPABASE_SERVICE_ROLE_KEY="YOUR_SERVICE_ROLE_KEY"
     $ python tools/seed_chatbot_knowledge.py

Notes:
- Uses Service Role key by default to bypass RLS for seeding.
- Items whose title already exists are skipped, so re-running is safe.
"""

from __future__ import annotations

import os
import sys
from typing import Any, Dict, List, Set

from supabase import Client, create_client


# -----------------------------------------------------------------------------
# 0) Ensure imports work when running from /tools
# -----------------------------------------------------------------------------
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from config.knowledge_corpus import KNOWLEDGE_ITEMS  # noqa: E402
from config.settings import load_supabase_env  # noqa: E402


TABLE = "chatbot_knowledge"


# -----------------------------------------------------------------------------
# 1) Supabase client
# -----------------------------------------------------------------------------
def get_supabase() -> Client:
    env = load_supabase_env()
    if not env.configured:
        raise RuntimeError(
            "Missing SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (recommended) in environment."
        )
    return create_client(env.url, env.key)


# -----------------------------------------------------------------------------
# 2) Helpers
# -----------------------------------------------------------------------------
def existing_titles(sb: Any) -> Set[str]:
    res = sb.table(TABLE).select("title").execute()
    return {str(r.get("title") or "").strip().lower() for r in (res.data or [])}


def pending_items(items: List[Dict[str, Any]], present: Set[str]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    seen: Set[str] = set(present)
    for item in items:
        key = str(item.get("title") or "").strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out


def chunk(items: List[Any], size: int) -> List[List[Any]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


# -----------------------------------------------------------------------------
# 3) Main seeding routine
# -----------------------------------------------------------------------------
def seed(sb: Any, items: List[Dict[str, Any]] = KNOWLEDGE_ITEMS, batch_size: int = 20) -> int:
    rows = pending_items(items, existing_titles(sb))

    total = 0
    for batch in chunk(rows, batch_size):
        sb.table(TABLE).insert(batch).execute()
        total += len(batch)
        print(f"  Inserted {total}/{len(rows)} rows.")
    return total


def main() -> None:
    sb = get_supabase()
    batch_size = int(os.getenv("SUPABASE_INSERT_BATCH", "20"))
    total = seed(sb, batch_size=batch_size)
    print(f"Seed complete. Inserted {total} new rows into public.{TABLE}.")


if __name__ == "__main__":
    main()
