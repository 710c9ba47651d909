import re
from typing import List, Optional, Tuple


# Reply keyboard label -> menu action
MENU_LABELS = {
    "🏁 Выбрать марку": "brands",
    "🔍 Поиск моделей": "search",
    "📊 Статистика": "stats",
    "🎮 Викторина": "quiz",
    "⭐️ Избранное": "favorites",
    "🔄 Случайная модель": "random",
    "🏆 Топ модели": "top",
    "📈 Категории": "category_stats",
}

MAIN_MENU_LAYOUT: List[List[str]] = [
    ["🏁 Выбрать марку", "🔍 Поиск моделей"],
    ["🎮 Викторина", "⭐️ Избранное"],
    ["🔄 Случайная модель", "📊 Статистика"],
    ["🏆 Топ модели", "📈 Категории"],
]

COMMANDS = (
    "/start",
    "/help",
    "/stats",
    "/search",
    "/compare",
    "/random",
    "/quiz",
    "/favorites",
    "/brands",
    "/categories",
)

_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def match_menu_label(text: str) -> Optional[str]:
    return MENU_LABELS.get(text.strip())


def normalize_command(text: str) -> str:
    """
    "/start@CarBot payload" -> "/start"
    """
    stripped = (text or "").strip()
    if not stripped:
        return ""
    head = stripped.split(maxsplit=1)[0]
    return head.split("@", 1)[0].lower()


def split_compare_query(text: str) -> Optional[Tuple[str, str]]:
    """
    Split "M3, Charger" into two trimmed names.
    Trailing empty parts are dropped before counting ("M3," is one part),
    anything other than exactly two parts is rejected. A blank part that
    survives the count ("M3, ") comes back as "" and fails the lookup.
    """
    parts = text.split(",")
    while parts and parts[-1] == "":
        parts.pop()
    if len(parts) != 2:
        return None
    return parts[0].strip(), parts[1].strip()


def escape_markdown(text: str) -> str:
    # Legacy Telegram Markdown
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)
