from dataclasses import dataclass
from typing import Optional
from loguru import logger


BACK_TO_BRANDS = "back_to_brands"
BACK_TO_CATEGORIES = "back_to_categories"
RESTART_QUIZ = "restart_quiz"
MAIN_MENU = "main_menu"
NEXT_QUESTION = "next_question"
CLEAR_FAVORITES = "clear_favorites"

LITERAL_TOKENS = {
    BACK_TO_BRANDS,
    BACK_TO_CATEGORIES,
    RESTART_QUIZ,
    MAIN_MENU,
    NEXT_QUESTION,
    CLEAR_FAVORITES,
}

# prefix -> action; "page" is handled separately
VALUE_PREFIXES = {
    "brand_": "brand",
    "category_": "category",
    "model_": "model",
    "favorite_": "favorite",
    "quiz_": "quiz",
}
PAGE_PREFIX = "page_"


@dataclass(frozen=True)
class CallbackAction:
    """Parsed button press."""
    action: str
    value: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    page: int = 0


def brand_token(brand: str) -> str:
    return f"brand_{brand}"


def category_token(category: str) -> str:
    return f"category_{category}"


def model_token(model: str) -> str:
    return f"model_{model}"


def favorite_token(model: str) -> str:
    return f"favorite_{model}"


def quiz_token(answer: str) -> str:
    return f"quiz_{answer}"


def page_token(brand: str, category: str, page: int) -> str:
    return f"page_{brand}_{category}_{page}"


def _parse_page(body: str) -> Optional[CallbackAction]:
    # brand is up to the first "_", index after the last one
    head, sep, index = body.rpartition("_")
    if not sep:
        return None
    brand, sep, category = head.partition("_")
    if not sep or not brand or not category:
        return None
    try:
        page = int(index)
    except ValueError:
        return None
    return CallbackAction(action="page", brand=brand, category=category, page=page)


def parse_callback(token: Optional[str]) -> Optional[CallbackAction]:
    """
    Parse a callback token.
    Returns None for anything that does not fit the grammar.
    """
    if not token:
        return None

    if token in LITERAL_TOKENS:
        return CallbackAction(action=token)

    if token.startswith(PAGE_PREFIX):
        parsed = _parse_page(token[len(PAGE_PREFIX):])
        if parsed is None:
            logger.warning(f"Malformed page token: {token!r}")
        return parsed

    for prefix, action in VALUE_PREFIXES.items():
        if token.startswith(prefix):
            value = token[len(prefix):]
            if not value:
                logger.warning(f"Empty value in callback token: {token!r}")
                return None
            return CallbackAction(action=action, value=value)

    logger.warning(f"Unknown callback token: {token!r}")
    return None
