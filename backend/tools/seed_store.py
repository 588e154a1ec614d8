#!/usr/bin/env python3
"""
Seed the configured product store from the bundled snapshot, or export it back.

Usage:
    python tools/seed_store.py                     # Seed STORE_BACKEND if it is empty
    python tools/seed_store.py --backend mongo     # Override STORE_BACKEND
    python tools/seed_store.py --dry-run           # Show what would be seeded
    python tools/seed_store.py --export            # Write the store back to the snapshot file
    python tools/seed_store.py --export --output /tmp/products.json
"""

import argparse
import os
import sys

BACKEND_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, BACKEND_ROOT)

from storefront import create_app  # noqa: E402
from storefront.errors import BackendError  # noqa: E402
from storefront.services.product_store import load_snapshot  # noqa: E402


def seed(store, dry_run: bool = False) -> int:
    if dry_run:
        if store.is_initialized():
            print(f"  [DRY RUN] {store.name} store already initialized ({store.count()} products), nothing to seed")
            return 0
        snapshot = load_snapshot(store.snapshot_file, store.default_image_url)
        print(f"  [DRY RUN] Would seed {len(snapshot)} products into {store.name} store")
        return len(snapshot)

    seeded = store.seed_if_empty()
    if not seeded:
        print(f"  OK {store.name} store already initialized ({store.count()} products)")
    return seeded


def export(store, output=None) -> int:
    written = store.export_snapshot(output)
    print(f"  OK Exported {written} products to {output or store.snapshot_file}")
    return written


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed or export the product store")
    parser.add_argument("--backend", choices=["json", "redis", "mongo", "sql"],
                        help="Store backend (defaults to STORE_BACKEND)")
    parser.add_argument("--dry-run", action="store_true", help="Only report what would change")
    parser.add_argument("--export", action="store_true", help="Export the store to the snapshot file")
    parser.add_argument("--output", help="Export destination (defaults to SNAPSHOT_FILE)")
    args = parser.parse_args(argv)

    overrides = {"STORE_BACKEND": args.backend} if args.backend else None
    app = create_app(overrides)
    store = app.extensions["product_store"]

    try:
        if args.export:
            export(store, args.output)
        else:
            seed(store, dry_run=args.dry_run)
    except BackendError as e:
        print(f"  x {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
