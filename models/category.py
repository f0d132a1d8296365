"""Category model for transaction categorization."""

import re
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_COLOR = "#6C5CE7"

_KEYWORD_SEPARATORS = re.compile(r"[,;\s]+")


@dataclass
class Category:
    """Represents a spending or income category.

    Attributes:
        id: Unique identifier (auto-generated).
        name: Category name (unique), e.g. "groceries".
        display_name: Human readable label.
        color_hex: Chart color.
        icon: Optional icon shown next to the label.
        parent_id: Optional parent category ID. Only the id is held, never the
            parent object, so deleting or editing a parent cannot leave a
            dangling reference behind.
        keywords: Delimited keyword string used for matching, e.g. "REWE,EDEKA".
        is_expense: True for expense categories, False for income categories.
            Independent of the parent's flag.
        is_active: False once the category has been soft-deleted.
    """

    id: Optional[int]
    name: str
    display_name: str
    color_hex: str = DEFAULT_COLOR
    icon: Optional[str] = None
    parent_id: Optional[int] = None
    keywords: Optional[str] = None
    is_expense: bool = True
    is_active: bool = True

    # Categories are used as dictionary keys in reports
    def __hash__(self):
        return hash((self.id, self.name))

    @property
    def is_main_category(self) -> bool:
        return self.parent_id is None

    @property
    def full_display_name(self) -> str:
        if self.icon:
            return f"{self.icon} {self.display_name}"
        return self.display_name

    def keyword_list(self) -> List[str]:
        """Split the keyword string on commas, semicolons and whitespace.

        Returns:
            Lowercased, non-empty keywords in their stored order.
        """
        if not self.keywords or not self.keywords.strip():
            return []
        return [k for k in _KEYWORD_SEPARATORS.split(self.keywords.lower()) if k]
