import pytest

from freshcart.client.selector import CascadingSelector, MissingLevelsError

CATEGORIES = [
    {"id": "produce", "name": "Produce", "parent_id": None},
    {"id": "bakery", "name": "Bakery", "parent_id": None},
    {"id": "fruit", "name": "Fruit", "parent_id": "produce"},
    {"id": "veg", "name": "Vegetables", "parent_id": "produce"},
    {"id": "citrus", "name": "Citrus", "parent_id": "fruit"},
    {"id": "lemons", "name": "Lemons", "parent_id": "citrus"},
    {"id": "meyer", "name": "Meyer", "parent_id": "lemons"},
    {"id": "organic", "name": "Organic Meyer", "parent_id": "meyer"},
]


def _ids(level):
    return [o.id for o in level.options]


def test_level_one_lists_roots_only():
    sel = CascadingSelector.setup(CATEGORIES)
    assert _ids(sel.level(1)) == ["produce", "bakery"]
    assert sel.visible_levels() == [1]
    assert sel.level(1).placeholder == "Select Main Category"
    assert sel.level(2).placeholder == "Select Subcategory (Optional)"


def test_selecting_parent_reveals_exactly_its_children():
    sel = CascadingSelector.setup(CATEGORIES)
    sel.select(1, "produce")
    assert _ids(sel.level(2)) == ["fruit", "veg"]
    assert sel.visible_levels() == [1, 2]
    for lvl in (3, 4, 5):
        assert not sel.level(lvl).visible


def test_selecting_leaf_hides_deeper_levels():
    sel = CascadingSelector.setup(CATEGORIES)
    sel.select(1, "produce")
    sel.select(2, "veg")
    assert sel.visible_levels() == [1, 2]
    assert sel.effective_category_id() == "veg"


def test_changing_upper_level_resets_lower_selections():
    sel = CascadingSelector.setup(CATEGORIES)
    sel.select(1, "produce")
    sel.select(2, "fruit")
    sel.select(3, "citrus")
    sel.select(1, "bakery")
    assert sel.visible_levels() == [1]
    assert sel.level(2).selected is None and sel.level(3).selected is None
    assert sel.effective_category_id() == "bakery"


def test_effective_category_is_deepest_selection_and_path():
    sel = CascadingSelector.setup(CATEGORIES)
    sel.select(1, "produce")
    sel.select(2, "fruit")
    sel.select(3, "citrus")
    # stopping early is allowed even though citrus has children
    assert sel.level(4).visible
    assert sel.effective_category_id() == "citrus"
    assert sel.selected_path() == ["Produce", "Fruit", "Citrus"]
    assert sel.path_label() == "Produce → Fruit → Citrus"


def test_depth_is_capped_at_five_levels():
    sel = CascadingSelector.setup(CATEGORIES)
    for level, cid in enumerate(["produce", "fruit", "citrus", "lemons", "meyer"], start=1):
        sel.select(level, cid)
    # meyer has a child but there is no sixth level
    assert sel.visible_levels() == [1, 2, 3, 4, 5]
    assert sel.effective_category_id() == "meyer"


def test_clearing_a_level_falls_back_to_parent_selection():
    sel = CascadingSelector.setup(CATEGORIES)
    sel.select(1, "produce")
    sel.select(2, "fruit")
    sel.select(2, None)
    assert sel.effective_category_id() == "produce"
    assert sel.visible_levels() == [1, 2]


def test_rejects_option_from_another_level():
    sel = CascadingSelector.setup(CATEGORIES)
    with pytest.raises(ValueError):
        sel.select(1, "fruit")
    with pytest.raises(ValueError):
        sel.select(3, "citrus")


def test_setup_reports_all_missing_levels():
    with pytest.raises(MissingLevelsError) as exc:
        CascadingSelector.setup(CATEGORIES, bound_levels=[1, 2, 4])
    assert exc.value.missing == [3, 5]


def test_no_selection_means_no_category():
    sel = CascadingSelector.setup(CATEGORIES)
    assert sel.effective_category_id() is None
    assert sel.path_label() == ""
