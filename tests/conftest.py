# tests/conftest.py

import pytest

from schedule_builder.app.models.categories import CategoryTable


@pytest.fixture
def categories():
    return CategoryTable()


@pytest.fixture
def wall_beam_tree():
    return {
        "id": "root",
        "children": [
            {"id": "1", "type": "Wall", "Mark": "W1"},
            {"id": "2", "type": "Beam", "Host": "W1"},
        ],
    }


@pytest.fixture
def speckle_tree():
    """Viewer-shaped tree: records under raw/model, children under several pointers."""
    return {
        "id": "root",
        "model": {
            "raw": {"id": "project", "speckleType": "Objects.Organization.Model"},
            "children": [
                {
                    "model": {
                        "raw": {
                            "id": "w-1",
                            "speckleType": "IFCWALLSTANDARDCASE",
                            "Identity Data": {"Mark": "W-01"},
                            "Dimensions": {"Length": {"_": 4200}, "Area": "12.6"},
                            "Pset_WallCommon": {"IsExternal": True, "FireRating": "EI60"},
                            "name": "Basic Wall",
                        },
                        "children": [
                            {
                                "raw": {
                                    "id": "win-1",
                                    "speckleType": "IFCWINDOW",
                                    "Constraints": {"Host": "W-01"},
                                    "Dimensions": {"Width": 900, "Height": 1200},
                                },
                            },
                        ],
                    },
                },
                {
                    "raw": {
                        "id": "d-1",
                        "speckleType": "IFCDOOR",
                        "Constraints": {"Host": "W-99"},
                        "Dimensions": {"Width": 1000},
                    },
                },
            ],
        },
    }
