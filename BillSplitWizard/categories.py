"""
Categories Module

Bill categories offered by the wizard. A bill carries one category_id;
"food" is the default for a new bill.
"""


# id -> display name
CATEGORIES = {
    "food": "Food",
    "coffee": "Coffee & drinks",
    "shopping": "Shopping",
    "transportation": "Transportation",
    "home": "Home & utilities",
    "work": "Work",
    "entertainment": "Entertainment",
    "education": "Education",
    "gift": "Gifts",
    "groceries": "Groceries",
    "health": "Health",
    "personal": "Personal",
    "ticket": "Tickets",
    "party": "Party",
    "game": "Games",
    "book": "Books",
    "other": "Other",
}

DEFAULT_CATEGORY_ID = "food"

VALID_CATEGORIES = set(CATEGORIES)


def validate_category(category_id: str) -> str:
    """
    Check that category_id is one of VALID_CATEGORIES.

    Raises:
        ValueError: If the category is unknown.
    """
    if category_id not in VALID_CATEGORIES:
        raise ValueError(
            f"Invalid category '{category_id}'. Must be one of: {sorted(VALID_CATEGORIES)}"
        )
    return category_id


def category_name(category_id: str) -> str:
    """Display name for a category id, falling back to "Other"."""
    return CATEGORIES.get(category_id, CATEGORIES["other"])
