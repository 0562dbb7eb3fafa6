# tests/test_classifier.py

import pytest

from schedule_builder.app.models.categories import UNCATEGORIZED, CategoryTable
from schedule_builder.app.services.classifier import classify_record, classify_type


@pytest.mark.parametrize("type_name, expected", [
    ("IFCBEAM", "Structural Framing"),
    ("Objects.BuiltElements.Beam", "Structural Framing"),
    ("IfcWindow", "Windows"),
    ("IFCDOOR", "Doors"),
    ("IfcColumn", "Columns"),
])
def test_child_category_match(categories, type_name, expected):
    assert classify_type(type_name, categories) == expected


@pytest.mark.parametrize("type_name, expected", [
    ("IFCWALLSTANDARDCASE", "Walls"),
    ("Wall", "Walls"),
    ("IfcSlab", "Floors"),
    ("IfcRoof", "Roofs"),
])
def test_parent_category_match(categories, type_name, expected):
    assert classify_type(type_name, categories) == expected


@pytest.mark.parametrize("type_name", ["IfcFurniture", "", "   ", None, 42, {"x": 1}])
def test_unmatched_falls_back_to_uncategorized(categories, type_name):
    assert classify_type(type_name, categories) == UNCATEGORIZED


def test_child_wins_over_parent():
    table = CategoryTable(
        parent_categories=["Walls"],
        child_categories=["Curtain Panels"],
        patterns={"Walls": ["wall"], "Curtain Panels": ["curtainwallpanel"]},
    )
    assert classify_type("IfcCurtainWallPanel", table) == "Curtain Panels"
    assert classify_type("IfcWall", table) == "Walls"


def test_uncategorized_patterns_never_match():
    table = CategoryTable(
        parent_categories=[UNCATEGORIZED],
        child_categories=[],
        patterns={UNCATEGORIZED: ["thing"]},
    )
    assert table.patterns_for(UNCATEGORIZED) == []
    assert classify_type("thing", table) == UNCATEGORIZED


def test_record_falls_back_to_other_category(categories):
    raw = {"id": "x", "speckleType": "Base", "Other": {"Category": "Doors"}}
    assert classify_record(raw, categories) == "Doors"
    assert classify_record({"id": "y"}, categories) == UNCATEGORIZED
