from pydantic import BaseModel

DEFAULT_CATEGORY = "counseling"
NEUTRAL_COLOR = "gray"


class CategoryInfo(BaseModel):
    label: str
    color: str
    name_label: str = "Title"


# Cosmetic only; any other category string is accepted and rendered neutral.
CATEGORIES: dict[str, CategoryInfo] = {
    "counseling": CategoryInfo(label="Counseling", color="pink", name_label="Client name"),
    "work": CategoryInfo(label="Work", color="purple"),
    "private": CategoryInfo(label="Private", color="red"),
}

# Day indicator: first category present in this order wins
INDICATOR_PRIORITY = ["counseling", "work", "private"]


def category_info(category: str) -> CategoryInfo:
    return CATEGORIES.get(category) or CategoryInfo(label=category, color=NEUTRAL_COLOR)


def name_label(category: str) -> str:
    """Label of the display-name field, derived from the category."""
    return category_info(category).name_label


def category_color(category: str) -> str:
    return category_info(category).color
