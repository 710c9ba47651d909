import random
from unittest.mock import MagicMock
import pytest
from app.engine.router import EventRouter, PAGE_SIZE
from app.fsm.session import SessionStore
from app.fsm.states import Mode
from app.models.dto import InboundEvent
from app.utils import response_helpers as views
from app.utils.catalog import build_catalog
from app.utils.quiz import QuizQuestion

CHAT_ID = 123

ONE_QUESTION = (
    QuizQuestion(
        question="Какая модель BMW является самым продаваемым седаном?",
        options=("3 Series", "5 Series", "7 Series", "1 Series"),
        answer="3 Series",
    ),
)


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def router(store):
    return EventRouter(build_catalog(), store, quiz_bank=ONE_QUESTION, rng=random.Random(42))


@pytest.fixture
def session(router):
    return router.store.get_or_create(CHAT_ID)


def command(router, text):
    return router.handle(InboundEvent(kind="command", chat_id=CHAT_ID, payload=text))


def say(router, text):
    return router.handle(InboundEvent(kind="text", chat_id=CHAT_ID, payload=text))


def press(router, token):
    return router.handle(InboundEvent.from_callback(CHAT_ID, token))


def tokens(response):
    return [button.token for row in response.buttons for button in row]


# --- commands ---

def test_start_resets_navigation_but_keeps_favorites(router, session):
    press(router, "brand_BMW")
    press(router, "category_купе")
    press(router, "favorite_M3")
    command(router, "/search")

    response = command(router, "/start")

    assert response.show_main_menu
    assert "Добро пожаловать" in response.text
    assert session.mode == Mode.normal
    assert session.selected_brand is None
    assert session.selected_category is None
    assert session.favorites == {"M3"}
    assert session.brand_views == {"BMW": 1}


def test_start_with_bot_mention(router):
    response = command(router, "/start@CarExplorerBot")
    assert "Добро пожаловать" in response.text


def test_unknown_command_does_not_touch_session(router, session):
    command(router, "/compare")
    response = command(router, "/teleport")

    assert response.text == views.UNKNOWN_COMMAND_TEXT
    assert session.mode == Mode.compare


def test_help(router):
    assert "/search" in command(router, "/help").text


def test_categories_requires_brand(router):
    assert command(router, "/categories").text == views.NO_BRAND_TEXT

    press(router, "brand_Dodge")
    response = command(router, "/categories")
    assert "✅ *Dodge*" in response.text
    assert "American Muscle" in response.text


def test_brands_view(router):
    response = command(router, "/brands")
    assert response.text == views.BRAND_SELECTION_TEXT
    assert tokens(response) == ["brand_BMW", "brand_Dodge", "main_menu"]
    assert response.buttons[0][0].label == "🇩🇪 BMW - Немецкая премиум"


def test_stats(router):
    press(router, "brand_BMW")
    press(router, "brand_BMW")
    press(router, "brand_Dodge")

    text = command(router, "/stats").text
    assert "Всего просмотрено марок: 2" in text
    assert "• BMW: 2 раз" in text
    assert "• BMW: 13 моделей" in text
    assert "• Dodge: 8 моделей" in text


# --- normal-mode text ---

def test_unmatched_text_shows_menu_with_hint(router, session):
    response = say(router, "привет")
    assert response.text == views.UNKNOWN_TEXT
    assert response.show_main_menu
    assert session.mode == Mode.normal


def test_menu_labels(router, session):
    assert say(router, "🏁 Выбрать марку").text == views.BRAND_SELECTION_TEXT
    assert "Топ" in say(router, "🏆 Топ модели").text
    assert "🥇" in say(router, "🏆 Топ модели").text
    assert "Статистика по категориям" in say(router, "📈 Категории").text
    assert "Ваша статистика" in say(router, "📊 Статистика").text
    assert "избранное пусто" in say(router, "⭐️ Избранное").text
    assert "Производитель" in say(router, "🔄 Случайная модель").text
    assert "викторина" in say(router, "🎮 Викторина").text

    say(router, "🔍 Поиск моделей")
    assert session.mode == Mode.search


def test_category_stats_sorted_by_count(router):
    text = say(router, "📈 Категории").text
    lines = [line for line in text.splitlines() if "моделей" in line]
    assert "седан" in lines[0]
    assert "5 моделей" in lines[0]


# --- search ---

def test_search_returns_to_normal_with_results(router, session):
    command(router, "/search")
    response = say(router, "series")

    assert session.mode == Mode.normal
    assert "1. *2 Series*" in response.text
    assert tokens(response) == ["model_2 Series", "model_3 Series", "model_4 Series", "main_menu"]


def test_search_returns_to_normal_without_results(router, session):
    command(router, "/search")
    response = say(router, "Tesla")

    assert session.mode == Mode.normal
    assert "Модели не найдены" in response.text
    assert response.buttons is None


def test_search_truncates_long_result_list(router):
    command(router, "/search")
    response = say(router, "e")
    assert "10. *" in response.text
    assert "11. *" not in response.text
    assert "... и еще 1 моделей" in response.text


def test_search_keeps_query_outside_bold(router):
    command(router, "/search")
    response = say(router, "m_3*")
    assert response.text.startswith("🔍 *Результаты поиска для:* m\\_3\\*\n")


def test_command_in_search_mode_is_not_a_query(router, session):
    command(router, "/search")
    response = command(router, "/help")
    assert "Помощь" in response.text
    assert session.mode == Mode.search


# --- compare ---

def test_compare_arity_error_stays_in_compare(router, session):
    command(router, "/compare")
    response = say(router, "M3")

    assert response.text == views.COMPARE_ARITY_TEXT
    assert session.mode == Mode.compare

    say(router, "M3, M5, M8")
    assert session.mode == Mode.compare

    response = say(router, "M3,")
    assert response.text == views.COMPARE_ARITY_TEXT
    assert session.mode == Mode.compare


def test_compare_blank_second_model_is_not_found(router, session):
    command(router, "/compare")
    response = say(router, "M3, ")

    assert response.text == views.COMPARE_NOT_FOUND_TEXT
    assert session.mode == Mode.normal


def test_compare_unknown_model_returns_to_normal(router, session):
    command(router, "/compare")
    response = say(router, "M3, Tesla")

    assert response.text == views.COMPARE_NOT_FOUND_TEXT
    assert session.mode == Mode.normal


def test_compare_two_models(router, session):
    command(router, "/compare")
    response = say(router, " M3 ,  Charger ")

    assert session.mode == Mode.normal
    assert "*M3* vs *Charger*" in response.text
    assert "• Бренд: BMW" in response.text
    assert "• Бренд: Dodge" in response.text
    assert "⚡️ *M3 является маслкаром*" in response.text
    assert "одного бренда" not in response.text


def test_compare_models_flags(router):
    same = router.compare_models("M3", "M5")
    assert same.both_muscle_cars
    assert same.same_brand
    assert same.first.description == "BMW M3 - маслкар (Muscle Car)"

    mixed = router.compare_models("X5", "Durango")
    assert not mixed.both_muscle_cars
    assert not mixed.first.is_muscle_car
    assert not mixed.same_brand

    assert router.compare_models("X5", "Lada") is None


# --- navigation callbacks ---

def test_brand_callback_records_view_and_lists_categories(router, session):
    response = press(router, "brand_BMW")

    assert session.selected_brand == "BMW"
    assert session.brand_views == {"BMW": 1}
    assert "German Luxury" in response.text
    labels = [row[0].label for row in response.buttons[:-1]]
    assert labels[0] == "🚙 седан (3)"
    assert "🚚 пикап (1)" in labels
    nav = [button.token for button in response.buttons[-1]]
    assert nav[0] == "back_to_brands"
    assert nav[1].startswith("category_")


def test_category_callback_uses_selected_brand(router, session):
    press(router, "brand_BMW")
    response = press(router, "category_седан")

    assert session.selected_category == "седан"
    assert "📋 *BMW - седан*" in response.text
    assert "📄 Страница 1 из 1" in response.text
    assert "model_3 Series" in tokens(response)
    assert "favorite_3 Series" in tokens(response)


def test_category_without_brand_is_not_found(router):
    response = press(router, "category_седан")
    assert "Модели не найдены" in response.text
    assert response.buttons is None


def test_back_to_categories_without_brand_shows_brands(router):
    assert press(router, "back_to_categories").text == views.BRAND_SELECTION_TEXT
    press(router, "brand_Dodge")
    assert "✅ *Dodge*" in press(router, "back_to_categories").text


def test_back_to_brands_and_main_menu(router):
    assert press(router, "back_to_brands").text == views.BRAND_SELECTION_TEXT
    response = press(router, "main_menu")
    assert response.text == views.MAIN_MENU_TEXT
    assert response.show_main_menu


# --- pagination ---

@pytest.fixture
def big_router(store):
    catalog = build_catalog({"Test": ("Test brand", {"big": [f"Car {i:02d}" for i in range(12)]})})
    return EventRouter(catalog, store, rng=random.Random(1))


def test_pagination_clamps_high_index(big_router):
    last = big_router.models_page("Test", "big", 2)
    assert "📄 Страница 3 из 3" in last.text
    assert "11. *Car 10*" in last.text

    assert big_router.models_page("Test", "big", 99).text == last.text
    assert big_router.models_page("Test", "big", 99).buttons == last.buttons


def test_pagination_clamps_negative_index(big_router):
    first = big_router.models_page("Test", "big", 0)
    assert big_router.models_page("Test", "big", -5).text == first.text


def test_pagination_buttons(big_router):
    first = big_router.models_page("Test", "big", 0)
    assert "page_Test_big_1" in tokens(first)
    assert not any(token.endswith("_-1") for token in tokens(first))

    middle = big_router.models_page("Test", "big", 1)
    assert "page_Test_big_0" in tokens(middle)
    assert "page_Test_big_2" in tokens(middle)

    last = big_router.models_page("Test", "big", 2)
    assert "page_Test_big_1" in tokens(last)
    assert "page_Test_big_3" not in tokens(last)
    model_rows = [row for row in last.buttons if row[0].token.startswith("model_")]
    assert len(model_rows) == 12 - 2 * PAGE_SIZE


def test_page_callback(big_router):
    response = big_router.handle(InboundEvent.from_callback(CHAT_ID, "page_Test_big_1"))
    assert "6. *Car 05*" in response.text
    assert "📄 Страница 2 из 3" in response.text


def test_single_page_for_exact_page_size(store):
    catalog = build_catalog({"Test": ("Test brand", {"five": [f"Car {i}" for i in range(5)]})})
    router = EventRouter(catalog, store)
    assert "📄 Страница 1 из 1" in router.models_page("Test", "five", 1).text


# --- models & favorites ---

def test_model_details(router, session):
    press(router, "brand_BMW")
    response = press(router, "model_M3")

    assert "🏭 *Производитель:* BMW" in response.text
    assert "BMW M3 - маслкар (Muscle Car)" in response.text
    assert "🔥 *Это маслкар!*" in response.text
    assert tokens(response) == ["favorite_M3", "category_маслкар"]


def test_model_details_resolves_brand_without_selection(router):
    response = press(router, "model_Durango")
    assert "🏭 *Производитель:* Dodge" in response.text
    assert "Dodge Durango - внедорожник" in response.text
    assert tokens(response) == ["favorite_Durango", "page_Dodge_внедорожник_0"]

    back = press(router, "page_Dodge_внедорожник_0")
    assert "📋 *Dodge - внедорожник*" in back.text
    assert "model_Durango" in tokens(back)


def test_back_to_models_follows_the_model_brand(router, session):
    press(router, "brand_Dodge")
    response = press(router, "model_M3")

    assert "🏭 *Производитель:* BMW" in response.text
    assert tokens(response) == ["favorite_M3", "page_BMW_маслкар_0"]

    back = press(router, "page_BMW_маслкар_0")
    assert "📋 *BMW - маслкар*" in back.text
    assert "model_M3" in tokens(back)
    assert "model_Charger SRT Hellcat" not in tokens(back)


def test_model_details_unknown_model(router):
    response = press(router, "model_Tesla")
    assert "не найдена" in response.text

    response = press(router, "model_M_9*")
    assert response.text == "⚠️ *Модель не найдена в каталоге:* M\\_9\\*"


def test_model_details_favorite_state(router):
    press(router, "favorite_X5")
    response = press(router, "model_X5")
    assert "В вашем избранном" in response.text
    assert response.buttons[0][0].label == "❌ Удалить из избранного"


def test_favorite_toggle_twice_restores(router, session):
    added = press(router, "favorite_Ram")
    assert "добавлена" in added.text
    assert session.favorites == {"Ram"}

    removed = press(router, "favorite_Ram")
    assert "удалена" in removed.text
    assert session.favorites == set()


def test_favorites_listing_and_clear(router, session):
    press(router, "favorite_X5")
    press(router, "favorite_Durango")

    response = command(router, "/favorites")
    assert "1. *Durango* (Dodge)" in response.text
    assert "2. *X5* (BMW)" in response.text
    assert "clear_favorites" in tokens(response)

    cleared = press(router, "clear_favorites")
    assert session.favorites == set()
    assert "избранное пусто" in cleared.text
    assert tokens(cleared) == ["main_menu"]


def test_random_model_never_placeholder(router):
    for _ in range(30):
        response = command(router, "/random")
        assert "Производитель" in response.text
        assert "не доступно" not in response.text


# --- quiz ---

def test_quiz_issue_and_correct_answer(router, session):
    response = command(router, "/quiz")
    assert "самым продаваемым седаном" in response.text
    assert tokens(response) == ["quiz_3 Series", "quiz_5 Series", "quiz_7 Series", "quiz_1 Series", "next_question"]
    assert session.current_quiz_answer == "3 Series"

    result = press(router, "quiz_3 Series")
    assert result.replace_message
    assert "Правильно" in result.text
    assert session.correct_answers == 1
    assert tokens(result) == ["next_question", "main_menu"]


def test_quiz_wrong_answer(router, session):
    command(router, "/quiz")
    result = press(router, "quiz_7 Series")

    assert result.replace_message
    assert "Неправильно" in result.text
    assert "Правильный ответ: *3 Series*" in result.text
    assert session.correct_answers == 0


def test_quiz_answer_without_pending_question(router, session):
    result = press(router, "quiz_3 Series")
    assert result.replace_message
    assert "Активного вопроса нет" in result.text
    assert session.correct_answers == 0


def test_next_question_and_restart_reissue(router, session):
    for token in ("next_question", "restart_quiz"):
        session.current_quiz_answer = None
        response = press(router, token)
        assert "викторина" in response.text
        assert session.has_pending_quiz


def test_quiz_draws_from_whole_bank(store):
    from app.utils.quiz import QUIZ_BANK
    router = EventRouter(build_catalog(), store, rng=random.Random(3))
    seen = set()
    for _ in range(100):
        command(router, "/quiz")
        seen.add(store.get_or_create(CHAT_ID).current_quiz_question)
    assert seen == {q.question for q in QUIZ_BANK}


# --- errors ---

@pytest.mark.parametrize("token", ["page_BMW_седан_x", "brand_", "unknown", ""])
def test_malformed_callback_is_noop(router, session, token):
    assert press(router, token) is None
    assert session.mode == Mode.normal
    assert session.brand_views == {}


def test_unexpected_error_becomes_generic_message(store):
    catalog = MagicMock()
    catalog.list_brands.side_effect = RuntimeError("boom")
    router = EventRouter(catalog, store)

    response = command(router, "/brands")
    assert response.text == views.ERROR_TEXT

    # the session survives the failure
    assert CHAT_ID in store
    assert command(router, "/help").text == views.HELP_TEXT


def test_sessions_are_per_chat(router, store):
    router.handle(InboundEvent.from_callback(1, "favorite_M3"))
    router.handle(InboundEvent.from_callback(2, "favorite_X5"))

    assert store.get_or_create(1).favorites == {"M3"}
    assert store.get_or_create(2).favorites == {"X5"}
