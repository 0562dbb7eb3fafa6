from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

UNCATEGORIZED = "Uncategorized"

# -------------------------------------------------------------------------
# Default category tables
# -------------------------------------------------------------------------

DEFAULT_PARENT_CATEGORIES: List[str] = [
    UNCATEGORIZED,
    "Walls",
    "Floors",
    "Roofs",
    "Building",
    "Site",
    "Base",
]

DEFAULT_CHILD_CATEGORIES: List[str] = [
    "Structural Framing",
    "Structural Connections",
    "Windows",
    "Doors",
    "Columns",
    "Ducts",
    "Pipes",
    "Cable Trays",
    "Conduits",
    "Lighting Fixtures",
]

# Lower-case substrings matched against raw IFC / Speckle type strings
DEFAULT_CATEGORY_PATTERNS: Dict[str, List[str]] = {
    UNCATEGORIZED: [],
    # Parent categories
    "Walls": ["ifcwall", "ifcwallstandardcase", "wall"],
    "Floors": ["ifcfloor", "ifcslab", "floor", "slab"],
    "Roofs": ["ifcroof", "roof"],
    "Building": ["ifcbuilding", "building"],
    "Site": ["ifcsite", "site"],
    "Base": ["ifcfooting", "foundation"],
    # Child categories
    "Structural Framing": [
        "ifcbeam", "beam", "frame", "truss", "framing", "joist", "rafter", "stud", "plate",
    ],
    "Structural Connections": ["ifcconnection", "connection"],
    "Windows": ["ifcwindow", "window"],
    "Doors": ["ifcdoor", "door"],
    "Columns": ["ifccolumn", "column"],
    "Ducts": ["ifcduct", "duct"],
    "Pipes": ["ifcpipe", "pipe"],
    "Cable Trays": ["ifccabletray", "cabletray"],
    "Conduits": ["ifcconduit", "conduit"],
    "Lighting Fixtures": ["ifclightfixture", "lighting"],
}


class CategoryTable(BaseModel):
    """
    Category name -> type pattern lists, split into parent and child roles.

    Order matters: within each role the first matching category wins.
    """
    model_config = ConfigDict(frozen=True)

    parent_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_PARENT_CATEGORIES))
    child_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_CHILD_CATEGORIES))
    patterns: Dict[str, List[str]] = Field(default_factory=lambda: {k: list(v) for k, v in DEFAULT_CATEGORY_PATTERNS.items()})

    def patterns_for(self, category: str) -> List[str]:
        if category == UNCATEGORIZED:
            return []
        return [p.lower() for p in self.patterns.get(category, []) if p]
