"""
Seed gallery documents from a local JSON file.

The file may hold a single item object or an array of them. Items without an
id get a freshly generated one; every item is written into the folder for
``--type`` with its type forced to match.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.dependencies import get_blob_store
from backend.documents import generate_item_id, utc_timestamp
from backend.gallery import GALLERY_FOLDERS, GalleryRepository


logger = logging.getLogger(__name__)


def load_items(path: Path) -> list[dict]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [entry for entry in data if isinstance(entry, dict)]
    raise ValueError(f"{path} must contain a JSON object or array")


def seed_items(
    repo: GalleryRepository,
    item_type: str,
    raw_items: list[dict],
    dry_run: bool = False,
) -> int:
    seeded = 0
    for raw in raw_items:
        document = dict(raw)
        document.setdefault("id", generate_item_id(item_type))
        document.setdefault("publishDate", utc_timestamp())
        if dry_run:
            logger.info(
                "[dry-run] would save %s (%s)", document["id"], document.get("title")
            )
        else:
            repo.save_item(item_type, document)
        seeded += 1
    return seeded


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed gallery items into blob storage.")
    parser.add_argument("path", type=Path, help="JSON file with one item or a list")
    parser.add_argument(
        "--type",
        dest="item_type",
        choices=sorted(GALLERY_FOLDERS),
        default="gallery",
        help="Gallery type (folder) to write the items into",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the items without writing them",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    try:
        raw_items = load_items(args.path)
    except (OSError, ValueError) as exc:
        logger.error("Could not read %s: %s", args.path, exc)
        return 1

    repo = GalleryRepository(get_blob_store())
    seeded = seed_items(repo, args.item_type, raw_items, dry_run=args.dry_run)
    logger.info("Seeded %d of %d items", seeded, len(raw_items))
    return 0


if __name__ == "__main__":
    sys.exit(main())
