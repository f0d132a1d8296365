"""Rule-based transaction categorization.

A transaction is matched against the active categories by a fixed chain of
strategies. Each strategy is a plain function taking the transaction and the
active category list and returning a Category or None; the first strategy
that returns a category wins:

1. keyword match on the normalized reference and counterparty text
2. well-known counterparties (banks, authorities, insurers)
3. amount heuristics (large income, small expense)
4. the "uncategorized" fallback category

Not finding a category is a normal outcome and is reported as None.
"""

import re
from decimal import Decimal
from typing import Callable, List, Optional
from models.category import Category
from models.transaction import Transaction
from logger import get_logger

logger = get_logger()

UNCATEGORIZED = "uncategorized"

# Only keywords longer than this take part in matching
MIN_KEYWORD_LENGTH = 2

SALARY_THRESHOLD = Decimal("1500")
SMALL_EXPENSE_THRESHOLD = Decimal("10")

# Counterparty substrings -> target category name, checked in this order
COUNTERPARTY_RULES = [
    (("sparkasse", "volksbank", "dkb", "ing", "commerzbank"), "financial"),
    (("finanzamt", "stadt", "gemeinde", "bundesagentur"), "government"),
    (("versicherung", "allianz", "axa", "generali"), "insurance"),
]

_TRANSLITERATIONS = {"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"}
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")

Strategy = Callable[[Transaction, List[Category]], Optional[Category]]


def normalize_text(text: Optional[str]) -> str:
    """Normalize free text for matching.

    Lowercases, transliterates German umlauts and sharp s, replaces every
    other non-alphanumeric character with a space and collapses whitespace.

    Args:
        text: Raw text, may be None.

    Returns:
        Normalized text ("" for None).
    """
    if text is None:
        return ""
    text = text.lower()
    for char, replacement in _TRANSLITERATIONS.items():
        text = text.replace(char, replacement)
    text = _NON_ALNUM.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def matches_keywords(text: str, category: Category) -> bool:
    """Check whether text contains any of the category's keywords."""
    for keyword in category.keyword_list():
        keyword = keyword.strip()
        if len(keyword) > MIN_KEYWORD_LENGTH and keyword in text:
            return True
    return False


def contains_any(text: str, needles) -> bool:
    return any(needle in text for needle in needles)


def find_by_name(categories: List[Category], name: str) -> Optional[Category]:
    """Return the first category in the list with the given name."""
    return next((c for c in categories if c.name == name), None)


def match_by_keywords(
    transaction: Transaction, categories: List[Category]
) -> Optional[Category]:
    search_text = (
        f"{normalize_text(transaction.reference)} "
        f"{normalize_text(transaction.counterparty)}"
    ).strip()

    for category in categories:
        if category.keywords and matches_keywords(search_text, category):
            return category
    return None


def match_by_counterparty(
    transaction: Transaction, categories: List[Category]
) -> Optional[Category]:
    if transaction.counterparty is None:
        return None

    counterparty = normalize_text(transaction.counterparty)
    for needles, category_name in COUNTERPARTY_RULES:
        if contains_any(counterparty, needles):
            return find_by_name(categories, category_name)
    return None


def match_by_amount(
    transaction: Transaction, categories: List[Category]
) -> Optional[Category]:
    # Amounts are compared as-is, in the transaction's own currency
    if transaction.is_income and transaction.amount > SALARY_THRESHOLD:
        return find_by_name(categories, "salary")
    if transaction.is_expense and transaction.absolute_amount < SMALL_EXPENSE_THRESHOLD:
        return find_by_name(categories, "transport")
    return None


def match_default(
    transaction: Transaction, categories: List[Category]
) -> Optional[Category]:
    return find_by_name(categories, UNCATEGORIZED)


STRATEGIES: List[Strategy] = [
    match_by_keywords,
    match_by_counterparty,
    match_by_amount,
    match_default,
]


def categorize(
    transaction: Transaction,
    categories: List[Category],
    strategies: Optional[List[Strategy]] = None,
) -> Optional[Category]:
    """Assign the best matching category to a transaction.

    Args:
        transaction: Transaction to categorize. Left unmodified.
        categories: Active categories in retrieval order. Earlier categories
            win when several share a keyword.
        strategies: Strategy chain to run, defaults to STRATEGIES.

    Returns:
        The matching Category, or None. A transaction without reference text
        never matches, whatever its counterparty or amount.
    """
    if transaction is None or transaction.reference is None:
        return None

    for strategy in strategies or STRATEGIES:
        category = strategy(transaction, categories)
        if category is not None:
            logger.debug(
                f"Matched '{transaction.reference}' -> {category.name} "
                f"({strategy.__name__})"
            )
            return category
    return None


class ActiveCategoryCache:
    """In-process cache of the active category list.

    The list is loaded on first use and kept until invalidate() is called.
    CategoryService invalidates it on every create, update and delete made
    through it. Writes from another process are not seen until this process
    invalidates its own cache.
    """

    def __init__(self):
        self._categories: Optional[List[Category]] = None

    def get(self, loader: Callable[[], List[Category]]) -> List[Category]:
        """Return the cached list, calling loader to fill it when empty."""
        if self._categories is None:
            self._categories = loader()
            logger.debug(f"Cached {len(self._categories)} active categories")
        return self._categories

    def invalidate(self) -> None:
        self._categories = None
        logger.debug("Category cache cleared")

    @property
    def is_loaded(self) -> bool:
        return self._categories is not None
