#!/usr/bin/env python3
"""
Seed a category hierarchy and items from a JSON file (or the built-in sample).

The JSON is a list of category nodes, each shaped like
    {"name": "Produce", "children": [...], "items": [{"name": ..., "price": "2.99", "stock": 10}]}

Re-running is safe: categories are matched by (name, parent) and items by
(name, category), so existing rows are updated instead of duplicated.

Usage:
    python scripts/seed_catalog.py [--file catalog.json] [--print-admin-token]
"""
import argparse
import json
import logging
import os
import sys
from decimal import Decimal

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from freshcart.auth import create_access_token
from freshcart.db import SessionLocal, init_db
from freshcart.models.category import Category
from freshcart.models.item import Item

log = logging.getLogger("seed")

SAMPLE_CATALOG = [
    {
        "name": "Produce",
        "children": [
            {
                "name": "Fruit",
                "children": [
                    {"name": "Citrus", "items": [
                        {"name": "Meyer Lemon", "price": "2.99", "stock": 40},
                        {"name": "Navel Orange", "price": "0.89", "stock": 120},
                    ]},
                    {"name": "Berries", "items": [
                        {"name": "Strawberries 1lb", "price": "4.49", "stock": 25},
                    ]},
                ],
            },
            {"name": "Vegetables", "items": [
                {"name": "Carrots 2lb", "price": "1.99", "stock": 60},
            ]},
        ],
    },
    {
        "name": "Dairy",
        "children": [
            {"name": "Milk", "items": [{"name": "Whole Milk 1gal", "price": "3.79", "stock": 30}]},
            {"name": "Cheese", "children": [
                {"name": "Hard Cheese", "items": [{"name": "Aged Cheddar 8oz", "price": "5.49", "stock": 15}]},
            ]},
        ],
    },
    {"name": "Bakery", "items": [{"name": "Sourdough Loaf", "price": "4.50", "stock": 12}]},
]


def _upsert_category(db, name, parent_id):
    c = db.query(Category).filter(Category.name == name, Category.parent_id == parent_id).first()
    if c:
        return c, False
    c = Category(name=name, parent_id=parent_id)
    db.add(c)
    db.flush()
    return c, True


def _upsert_item(db, entry, category_id):
    price = Decimal(str(entry.get("price", "0")))
    stock = int(entry.get("stock", 0) or 0)
    item = db.query(Item).filter(Item.name == entry["name"], Item.category_id == category_id).first()
    if item:
        item.price = price
        item.stock = stock
        item.description = entry.get("description", item.description)
        item.image_url = entry.get("image_url", item.image_url)
        return False
    db.add(
        Item(
            name=entry["name"],
            description=entry.get("description"),
            price=price,
            stock=stock,
            category_id=category_id,
            image_url=entry.get("image_url"),
        )
    )
    return True


def seed(nodes, db):
    counts = {"categories": 0, "items": 0}
    # iterative walk keeps creation order parent-before-child
    stack = [(node, None) for node in reversed(nodes)]
    while stack:
        node, parent_id = stack.pop()
        category, created = _upsert_category(db, node["name"], parent_id)
        counts["categories"] += int(created)
        for entry in node.get("items", []):
            counts["items"] += int(_upsert_item(db, entry, category.id))
        for child in reversed(node.get("children", [])):
            stack.append((child, category.id))
    return counts


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", help="Path to a catalogue JSON file")
    parser.add_argument("--print-admin-token", action="store_true", help="Print a bearer token with the admin role")
    args = parser.parse_args()

    nodes = SAMPLE_CATALOG
    if args.file:
        if not os.path.exists(args.file):
            log.error("File not found: %s", args.file)
            sys.exit(1)
        with open(args.file, "r", encoding="utf-8") as f:
            nodes = json.load(f)

    init_db()
    db = SessionLocal()
    try:
        counts = seed(nodes, db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    log.info("seeded categories=%s items=%s", counts["categories"], counts["items"])

    if args.print_admin_token:
        print(create_access_token("admin", role="admin"))


if __name__ == "__main__":
    main()
