#!/usr/bin/env python3
"""
Seed demo compost piles.

Creates three piles that exercise the main states of the app when the
database has no piles yet:
- "Hot Pile Express": young, hot and frequently turned
- "Garden Pile": older than the method's maximum duration
- "Backyard Pile": vitals not logged for 10 days
"""
import sys
import os
import logging
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.database import SessionLocal, init_db
from app.services.compost_store import CompostStore
from app.services.harvest_eta_service import recompute_and_store

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_PILES = [
    {
        "name": "Hot Pile Express",
        "age_days": 25,
        "logged_days_ago": 1,
        "temperature": "hot",
        "moisture": "humid",
        "materials": [(5, 2, True), (3, 1, True)],
        "turn_days_ago": [20, 15, 10, 5],
    },
    {
        "name": "Garden Pile",
        "age_days": 185,
        "logged_days_ago": 3,
        "temperature": "cold",
        "moisture": "dry",
        "materials": [(6, 1, False), (4, 1, False)],
        "turn_days_ago": [150, 100, 50],
    },
    {
        "name": "Backyard Pile",
        "age_days": 40,
        "logged_days_ago": 10,
        "temperature": "warm",
        "moisture": "humid",
        "materials": [(2, 2, False)],
        "turn_days_ago": [15],
    },
]


def seed_demo_piles(store: CompostStore, now: datetime) -> int:
    """Insert the demo piles when the store holds none. Returns how many were created."""
    if store.list_piles():
        logger.info("Piles already present, skipping demo seed")
        return 0

    store.ensure_default_methods()
    methods = store.list_methods()
    method_id = methods[0].id if methods else None

    for demo in DEMO_PILES:
        created_at = now - timedelta(days=demo["age_days"])
        pile = store.create_pile(demo["name"], created_at, method_id=method_id)

        for browns, greens, shredded in demo["materials"]:
            store.add_material(pile.id, browns, greens, shredded, created_at)
        for days_ago in demo["turn_days_ago"]:
            store.record_turn(pile.id, now - timedelta(days=days_ago))
        store.update_vitals(
            pile.id,
            demo["temperature"],
            demo["moisture"],
            now - timedelta(days=demo["logged_days_ago"]),
        )
        recompute_and_store(store, pile.id, now)
        logger.info(f"Seeded demo pile {demo['name']!r}")

    return len(DEMO_PILES)


if __name__ == "__main__":
    init_db()
    db = SessionLocal()
    try:
        created = seed_demo_piles(CompostStore(db), datetime.now(timezone.utc).replace(tzinfo=None))
        print(f"Created {created} demo pile(s)")
    finally:
        db.close()
