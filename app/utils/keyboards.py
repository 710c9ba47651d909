from typing import List, Optional, Sequence
from app.models.dto import Button
from app.utils import callbacks
from app.utils.quiz import QuizQuestion


Grid = List[List[Button]]

CATEGORY_EMOJI = {
    "седан": "🚙",
    "внедорожник": "🚙",
    "купе": "🏎",
    "пикап": "🚚",
    "маслкар": "🔥",
}


def category_emoji(category: str) -> str:
    return CATEGORY_EMOJI.get(category, "🚗")


def main_menu_button() -> Button:
    return Button(label="🏠 Главное меню", token=callbacks.MAIN_MENU)


def brands_keyboard(brands: Sequence[tuple]) -> Grid:
    """brands: (name, emoji, tagline) triples."""
    rows = [
        [Button(label=f"{emoji} {name} - {tagline}", token=callbacks.brand_token(name))]
        for name, emoji, tagline in brands
    ]
    rows.append([main_menu_button()])
    return rows


def categories_keyboard(categories: Sequence[tuple], random_category: Optional[str]) -> Grid:
    """categories: (name, model_count) pairs."""
    rows = [
        [Button(label=f"{category_emoji(name)} {name} ({count})", token=callbacks.category_token(name))]
        for name, count in categories
    ]
    nav = [Button(label="🔙 Назад к маркам", token=callbacks.BACK_TO_BRANDS)]
    if random_category:
        nav.append(Button(label="🎲 Случайная категория", token=callbacks.category_token(random_category)))
    rows.append(nav)
    return rows


def models_page_keyboard(
    brand: str,
    category: str,
    models: Sequence[str],
    page: int,
    total_pages: int,
) -> Grid:
    rows: Grid = [
        [
            Button(label=f"🚙 {model}", token=callbacks.model_token(model)),
            Button(label="⭐️", token=callbacks.favorite_token(model)),
        ]
        for model in models
    ]

    pagination = []
    if page > 0:
        pagination.append(Button(label="◀️ Назад", token=callbacks.page_token(brand, category, page - 1)))
    if page < total_pages - 1:
        pagination.append(Button(label="Вперед ▶️", token=callbacks.page_token(brand, category, page + 1)))
    if pagination:
        rows.append(pagination)

    rows.append([
        Button(label="🔙 Назад к категориям", token=callbacks.BACK_TO_CATEGORIES),
        main_menu_button(),
    ])
    return rows


def model_details_keyboard(
    model: str,
    is_favorite: bool,
    category: Optional[str],
    page_brand: Optional[str] = None,
) -> Grid:
    """
    page_brand is set when the model belongs to a brand other than the
    selected one; the back button then points at that brand's first page.
    """
    favorite_label = "❌ Удалить из избранного" if is_favorite else "⭐️ Добавить в избранное"
    if category and page_brand:
        back_token = callbacks.page_token(page_brand, category, 0)
    elif category:
        back_token = callbacks.category_token(category)
    else:
        back_token = callbacks.BACK_TO_CATEGORIES
    return [
        [Button(label=favorite_label, token=callbacks.favorite_token(model))],
        [Button(label="🔙 Назад к моделям", token=back_token)],
    ]


def quiz_keyboard(question: QuizQuestion) -> Grid:
    rows = [[Button(label=f"🚗 {option}", token=callbacks.quiz_token(option))] for option in question.options]
    rows.append([Button(label="➡️ Следующий вопрос", token=callbacks.NEXT_QUESTION)])
    return rows


def quiz_result_keyboard() -> Grid:
    return [[
        Button(label="🔄 Новый вопрос", token=callbacks.NEXT_QUESTION),
        main_menu_button(),
    ]]


def favorites_keyboard(has_favorites: bool) -> Grid:
    rows: Grid = []
    if has_favorites:
        rows.append([Button(label="🗑 Очистить избранное", token=callbacks.CLEAR_FAVORITES)])
    rows.append([main_menu_button()])
    return rows


def search_results_keyboard(models: Sequence[str]) -> Grid:
    rows = [[Button(label=f"🚙 {model}", token=callbacks.model_token(model))] for model in models]
    rows.append([main_menu_button()])
    return rows
