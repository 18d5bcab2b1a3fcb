import os
import sys

sys.path.append(os.path.join(os.path.dirname(__file__), "..", "scripts"))

from seed_catalog import SAMPLE_CATALOG, seed  # noqa: E402

from freshcart.catalog.tree import ancestor_path  # noqa: E402
from freshcart.models.category import Category  # noqa: E402
from freshcart.models.item import Item  # noqa: E402


def test_seed_builds_hierarchy_and_is_idempotent(db):
    first = seed(SAMPLE_CATALOG, db)
    db.commit()
    assert first == {"categories": 10, "items": 7}
    again = seed(SAMPLE_CATALOG, db)
    db.commit()
    assert again == {"categories": 0, "items": 0}

    cats = db.query(Category).all()
    hard = next(c for c in cats if c.name == "Hard Cheese")
    assert ancestor_path(cats, hard.id) == ["Dairy", "Cheese", "Hard Cheese"]
    assert db.query(Item).count() == 7
