"""
One-time migration of legacy product documents to the canonical shape.

Older documents store `images: [url, ...]` instead of a single `image` URL,
and some carry camelCase timestamp/review keys. Run once against a database:

    python migrations.py [--dry-run]
"""

import argparse
import logging
from typing import Any, Dict

from pymongo.database import Database

from config import get_settings
from database import PRODUCTS, connect

logger = logging.getLogger(__name__)

RENAMED_KEYS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "numReviews": "num_reviews",
}

LEGACY_FILTER = {"$or": [{"images": {"$exists": True}}] + [{k: {"$exists": True}} for k in RENAMED_KEYS]}


def plan_product_update(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Return the update document for one legacy product, or {} if already canonical."""
    set_fields: Dict[str, Any] = {}
    unset_fields: Dict[str, Any] = {}

    if "images" in doc:
        images = doc.get("images") or []
        if not doc.get("image"):
            if not images:
                logger.warning("Product %s has no image; storing an empty image URL", doc.get("_id"))
            set_fields["image"] = images[0] if images else ""
        unset_fields["images"] = ""

    for old, new in RENAMED_KEYS.items():
        if old in doc:
            if new not in doc:
                set_fields[new] = doc[old]
            unset_fields[old] = ""

    update: Dict[str, Any] = {}
    if set_fields:
        update["$set"] = set_fields
    if unset_fields:
        update["$unset"] = unset_fields
    return update


def migrate_product_images(db: Database, dry_run: bool = False) -> int:
    changed = 0
    for doc in db[PRODUCTS].find(LEGACY_FILTER):
        update = plan_product_update(doc)
        if not update:
            continue
        changed += 1
        if dry_run:
            logger.info("Would update product %s: %s", doc["_id"], update)
            continue
        db[PRODUCTS].update_one({"_id": doc["_id"]}, update)
    logger.info("%s %d legacy product document(s)", "Found" if dry_run else "Migrated", changed)
    return changed


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Convert legacy product documents to the single-image shape.")
    parser.add_argument("--dry-run", action="store_true", help="report what would change without writing")
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    db = connect(settings.database_url, settings.database_name)
    if db is None:
        logger.error("DATABASE_URL is not set")
        return 1
    migrate_product_images(db, dry_run=args.dry_run)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
