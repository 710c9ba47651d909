from typing import Dict, List, Optional, Sequence, Tuple
from app.models.dto import ModelComparison, ComparedModel
from app.utils.keyboards import category_emoji
from app.utils.quiz import QuizQuestion
from app.utils.text_parsers import escape_markdown


MEDALS = ("🥇", "🥈", "🥉")

ERROR_TEXT = "⚠️ Произошла ошибка. Пожалуйста, попробуйте еще раз или используйте /start"
UNKNOWN_COMMAND_TEXT = "Неизвестная команда. Используйте /help для списка команд."
UNKNOWN_TEXT = "Не понимаю ваш запрос. Выберите опцию из меню:"
MAIN_MENU_TEXT = "Главное меню:"
NO_BRAND_TEXT = "⚠️ Сначала выберите марку автомобиля!"
BRAND_SELECTION_TEXT = "🏁 *Выберите марку автомобиля:*"
COMPARE_ARITY_TEXT = "⚠️ Пожалуйста, введите ровно две модели через запятую."
COMPARE_NOT_FOUND_TEXT = "⚠️ Одна или обе модели не найдены."
RANDOM_FAILED_TEXT = "⚠️ Не удалось выбрать случайную модель. Попробуйте позже."

WELCOME_TEXT = (
    "🚗 *Добро пожаловать в Car Explorer Bot!*\n\n"
    "Я помогу вам изучить модели автомобилей BMW и Dodge.\n\n"
    "🌟 *Возможности:*\n"
    "• Просмотр моделей по категориям\n"
    "• Поиск моделей\n"
    "• Добавление в избранное\n"
    "• Автомобильная викторина\n"
    "• Статистика и сравнение\n\n"
    "👇 *Используйте кнопки ниже для навигации:*"
)

HELP_TEXT = (
    "❓ *Помощь по использованию бота*\n\n"
    "*Основные команды:*\n"
    "🏁 `/start` - Начать работу с ботом\n"
    "🔍 `/search` - Поиск моделей по названию\n"
    "🔄 `/compare` - Сравнить две модели\n"
    "🎲 `/random` - Показать случайную модель\n"
    "🎮 `/quiz` - Начать викторину\n"
    "⭐️ `/favorites` - Показать избранное\n"
    "📊 `/stats` - Ваша статистика\n"
    "🚗 `/brands` - Выбрать марку\n"
    "📂 `/categories` - Категории выбранной марки\n\n"
    "*Основные возможности:*\n"
    "• Просмотр моделей BMW и Dodge по категориям\n"
    "• Добавление моделей в избранное\n"
    "• Автомобильная викторина\n"
    "• Статистика просмотров\n"
    "• Поиск моделей\n"
    "• Сравнение моделей\n\n"
    "*Как использовать:*\n"
    "1. Начните с команды `/start`\n"
    "2. Используйте кнопки для навигации\n"
    "3. Нажимайте ⭐️ чтобы добавить в избранное\n"
    "4. Попробуйте викторину для проверки знаний\n\n"
    "*Советы:*\n"
    "• Для быстрого поиска используйте команду `/search`\n"
    "• Добавляйте понравившиеся модели в избранное\n"
    "• Проверьте свою статистику командой `/stats`"
)

SEARCH_PROMPT_TEXT = (
    "🔍 *Поиск моделей*\n\n"
    "Введите название модели или часть названия для поиска:\n\n"
    "*Примеры:*\n"
    "• M3\n"
    "• Charger\n"
    "• Series"
)

COMPARE_PROMPT_TEXT = (
    "🔄 *Сравнение моделей*\n\n"
    "Введите две модели для сравнения через запятую:\n\n"
    "*Пример:*\n"
    "M3, Charger\n"
    "5 Series, Durango"
)


def format_category_header(brand: str, description: str) -> str:
    return f"✅ *{brand}*\n📝 {description}\n\n👇 *Выберите тип автомобиля:*"


def format_models_page(brand: str, category: str, models: Sequence[str], start: int, page: int, total_pages: int) -> str:
    """
    Список моделей одной страницы; нумерация сквозная по всей категории.
    """
    lines = [f"📋 *{brand} - {category}*", ""]
    for offset, model in enumerate(models):
        lines.append(f"{start + offset + 1}. *{model}*")
    lines.append("")
    lines.append(f"📄 Страница {page + 1} из {total_pages}")
    return "\n".join(lines)


def format_empty_category(brand: Optional[str], category: Optional[str]) -> str:
    return f"📋 *{brand or '—'} - {category or '—'}*\n\n⚠️ Модели не найдены в этой категории."


def format_model_details(
    model: str,
    brand: str,
    description: str,
    year: int,
    horsepower: int,
    price: int,
    is_muscle_car: bool,
    is_favorite: bool,
) -> str:
    lines = [
        f"{'🔥 ' if is_muscle_car else ''}*{model}*",
        "",
        f"🏭 *Производитель:* {brand}",
        f"📅 *Год выпуска:* {year}",
        f"⚡️ *Мощность:* {horsepower} л.с.",
        f"💰 *Примерная цена:* ${price:,}",
        f"📝 *Описание:* {description}",
        "",
    ]
    if is_favorite:
        lines.append("⭐️ *В вашем избранном*")
    if is_muscle_car:
        lines.append("🔥 *Это маслкар!*")
    return "\n".join(lines)


def format_model_not_found(model: str) -> str:
    return f"⚠️ *Модель не найдена в каталоге:* {escape_markdown(model)}"


def format_quiz_question(question: QuizQuestion) -> str:
    return f"🎮 *Автомобильная викторина!*\n\n❓ {question.question}\n\nВыберите правильный ответ:"


def format_quiz_result(answer: str, correct_answer: str, is_correct: bool) -> str:
    if is_correct:
        return f"✅ *Правильно!*\n\nВы выбрали правильный ответ: *{answer}*\n\n🎉 Поздравляем!"
    return (
        f"❌ *Неправильно!*\n\n"
        f"Ваш ответ: {answer}\n"
        f"Правильный ответ: *{correct_answer}*\n\n"
        f"Попробуйте еще раз!"
    )


def format_no_pending_quiz() -> str:
    return "🎮 Активного вопроса нет. Нажмите «Новый вопрос», чтобы начать викторину."


def format_favorites(favorites: List[Tuple[str, Optional[str]]]) -> str:
    """favorites: (model, brand or None), already ordered."""
    if not favorites:
        return (
            "⭐️ *Ваше избранное пусто*\n\n"
            "Добавляйте модели в избранное, нажимая на звездочку ⭐️ рядом с моделью."
        )
    lines = ["⭐️ *Ваши избранные модели:*", ""]
    for i, (model, brand) in enumerate(favorites, start=1):
        brand_info = f" ({brand})" if brand else ""
        lines.append(f"{i}. *{model}*{brand_info}")
    return "\n".join(lines)


def format_favorite_toggled(model: str, added: bool) -> str:
    if added:
        return f"✅ Модель *{model}* добавлена в избранное!"
    return f"❌ Модель *{model}* удалена из избранного"


def format_user_stats(
    brands_viewed: int,
    correct_answers: int,
    favorites_count: int,
    top_brands: List[Tuple[str, int]],
    model_counts: Dict[str, int],
) -> str:
    lines = [
        "📊 *Ваша статистика:*",
        "",
        f"🔍 Всего просмотрено марок: {brands_viewed}",
        f"✅ Правильных ответов в викторине: {correct_answers}",
        f"⭐️ Избранных моделей: {favorites_count}",
        "",
    ]
    if top_brands:
        lines.append("*Популярные марки:*")
        lines.extend(f"• {brand}: {count} раз" for brand, count in top_brands)
    lines.append("")
    lines.append("📈 *Общая статистика бота:*")
    lines.extend(f"• {brand}: {count} моделей" for brand, count in model_counts.items())
    return "\n".join(lines)


def format_category_stats(stats: Dict[str, int]) -> str:
    lines = ["📈 *Статистика по категориям:*", ""]
    for category, count in sorted(stats.items(), key=lambda item: -item[1]):
        lines.append(f"{category_emoji(category)} *{category}*: {count} моделей")
    return "\n".join(lines)


def format_top_models(models: List[Tuple[str, Optional[str]]]) -> str:
    lines = [f"🏆 *Топ {len(models)} популярных моделей:*", ""]
    for position, (model, brand) in enumerate(models):
        medal = MEDALS[position] if position < len(MEDALS) else "🔸"
        lines.append(f"{medal} *{model}*")
        if brand:
            lines.append(f"   └── {brand}")
    return "\n".join(lines)


def format_search_results(query: str, results: List[str], limit: int) -> str:
    # user text stays outside the entity, escapes are not honored inside one
    header = f"🔍 *Результаты поиска для:* {escape_markdown(query)}"
    if not results:
        return f"{header}\n\n⚠️ Модели не найдены.\nПопробуйте другой запрос."

    lines = [header, ""]
    for i, model in enumerate(results[:limit], start=1):
        lines.append(f"{i}. *{model}*")
    if len(results) > limit:
        lines.append("")
        lines.append(f"... и еще {len(results) - limit} моделей")
    return "\n".join(lines)


def _format_compared(position: str, item: ComparedModel) -> List[str]:
    return [
        f"{position} *{item.model}*",
        f"   • Бренд: {item.brand}",
        f"   • Тип: {item.description}",
        f"   • Маслкар: {'Да 🔥' if item.is_muscle_car else 'Нет'}",
        "",
    ]


def format_comparison(comparison: ModelComparison) -> str:
    first, second = comparison.first, comparison.second
    lines = [
        "🔄 *Сравнение моделей:*",
        "",
        f"*{first.model}* vs *{second.model}*",
        "",
    ]
    lines.extend(_format_compared("1️⃣", first))
    lines.extend(_format_compared("2️⃣", second))

    if comparison.both_muscle_cars:
        lines.append("⚡️ *Обе модели являются маслкарами!*")
    elif first.is_muscle_car:
        lines.append(f"⚡️ *{first.model} является маслкаром*")
    elif second.is_muscle_car:
        lines.append(f"⚡️ *{second.model} является маслкаром*")

    if comparison.same_brand:
        lines.append("🏭 *Обе модели одного бренда*")
    return "\n".join(lines).rstrip("\n")
