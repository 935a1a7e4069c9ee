"""
Register rated entities with empty aggregates.

Usage:
    python scripts/seed_entities.py --count 30
    python scripts/seed_entities.py --file entities.json

The JSON file holds a list of {"id": "...", "info": {...}} objects. Entities
that already exist keep their aggregates.
"""

import argparse
import asyncio
import json
import os
import sys

from dotenv import load_dotenv

load_dotenv()

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rating_service.core.config import config  # noqa: E402
from rating_service.db.storage import (  # noqa: E402
    bootstrap_entities,
    close_storage,
    connect_storage,
    register_entities,
)


def load_entities_from_json(path):
    """Load (entity_id, info) pairs from a JSON file"""
    try:
        with open(path, 'r', encoding='utf-8') as file:
            entities = json.load(file)
    except FileNotFoundError:
        print(f"Error: {path} not found")
        return []
    except json.JSONDecodeError as e:
        print(f"Error parsing {path}: {e}")
        return []

    return [(str(entity["id"]), entity.get("info") or {}) for entity in entities]


async def seed(count, path):
    storage = await connect_storage()
    try:
        if path:
            entities = load_entities_from_json(path)
            if not entities:
                print("No entities to seed.")
                return
            created = await register_entities(storage, entities)
        else:
            created = await bootstrap_entities(storage, count)

        total = len(await storage.aggregates.list_all())
        print(f"Registered {created} new entities ({total} total) in '{config.storage_backend}' storage.")
    finally:
        await close_storage()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Register rated entities")
    parser.add_argument("--count", type=int, default=30, help="Register entities 1..COUNT")
    parser.add_argument("--file", help="JSON file with entities to register")
    args = parser.parse_args()

    asyncio.run(seed(args.count, args.file))
