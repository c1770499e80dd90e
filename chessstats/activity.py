"""
Web activity log: one `web_activity` document per visit, and summaries of it.
"""

from __future__ import annotations

import time
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Optional

from .db.store import DocumentStore

ACTIVITY_COLLECTION = "web_activity"
DAY_MS = 24 * 60 * 60 * 1000


async def record_activity(
    store: DocumentStore,
    username: str,
    page: str,
    now: Optional[int] = None,
) -> str:
    return await store.add(ACTIVITY_COLLECTION, {
        "username": username,
        "page": page,
        "timestamp": now if now is not None else int(time.time() * 1000),
    })


async def load_activity(store: DocumentStore) -> list[dict]:
    rows = await store.query(ACTIVITY_COLLECTION, order_by="timestamp", descending=True)
    return [data for _, data in rows]


def summarize_activity(logs: list[dict], now: Optional[int] = None) -> dict[str, Any]:
    """Overview of visit logs; `logs` must be newest first, timestamps in epoch ms."""
    now = now if now is not None else int(time.time() * 1000)
    total = len(logs)

    first = logs[-1]["timestamp"] if logs else now
    days_active = max(1, round((now - first) / DAY_MS))

    by_user = Counter(l.get("username") for l in logs)
    by_day: Counter[str] = Counter()
    by_hour: Counter[int] = Counter()
    for l in logs:
        dt = datetime.fromtimestamp(l["timestamp"] / 1000, tz=timezone.utc)
        by_day[dt.strftime("%Y-%m-%d")] += 1
        by_hour[dt.hour] += 1

    return {
        "total_visits": total,
        "unique_users": len(by_user),
        "visits_last_24h": sum(1 for l in logs if now - l["timestamp"] < DAY_MS),
        "visits_last_7d": sum(1 for l in logs if now - l["timestamp"] < 7 * DAY_MS),
        "avg_per_day": round(total / days_active, 1),
        "top_users": [{"username": u, "count": c} for u, c in by_user.most_common(10)],
        "by_day": [{"day": d, "count": by_day[d]} for d in sorted(by_day)],
        "by_hour": [{"hour": h, "count": by_hour.get(h, 0)} for h in range(24)],
        "recent": logs[:30],
    }
