#!/usr/bin/env python3
"""Seed place categories declared in the search vocabulary"""

import argparse
import logging
import sys
from typing import Dict, Optional

from placefinder.core.db import get_session_factory
from placefinder.places.services.intent_parser import load_vocabulary
from placefinder.places.store import PlaceStore

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def seed_categories(store: PlaceStore, vocabulary_path: Optional[str] = None) -> Dict[str, int]:
    """
    Upsert every category from the vocabulary file.

    Returns:
        Statistics dictionary with created/existing counts
    """
    vocabulary = load_vocabulary(vocabulary_path)
    stats = {"total": len(vocabulary.categories), "created": 0, "existing": 0}

    for category in vocabulary.categories:
        if store.upsert_category(category.slug, category.display_name):
            stats["created"] += 1
            logger.info(f"Created category {category.slug} ({category.display_name})")
        else:
            stats["existing"] += 1

    return stats


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed place categories")
    parser.add_argument("--vocabulary", help="Path to search vocabulary YAML")
    args = parser.parse_args(argv)

    try:
        stats = seed_categories(PlaceStore(get_session_factory()), args.vocabulary)
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        return 1

    if stats["total"] == 0:
        logger.warning("No categories found in vocabulary")
    logger.info(f"Seeding complete: {stats['created']} created, {stats['existing']} already present")
    return 0


if __name__ == "__main__":
    sys.exit(main())
