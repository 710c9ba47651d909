import math
import random
from typing import Optional
from loguru import logger
from app.fsm.session import SessionStore, UserSession
from app.fsm.states import Mode
from app.models.dto import BotResponse, ComparedModel, InboundEvent, ModelComparison
from app.utils import keyboards
from app.utils import response_helpers as views
from app.utils.callbacks import CallbackAction, parse_callback
from app.utils.catalog import CarCatalog
from app.utils.quiz import QUIZ_BANK, QuizQuestion, draw_question
from app.utils.text_parsers import COMMANDS, match_menu_label, normalize_command, split_compare_query


PAGE_SIZE = 5


class EventRouter:
    """
    Turns inbound events into responses.
    The session of the event's chat is locked for the whole dispatch.
    """

    def __init__(
        self,
        catalog: CarCatalog,
        store: SessionStore,
        quiz_bank: tuple = QUIZ_BANK,
        rng: Optional[random.Random] = None,
        search_results_limit: int = 10,
        search_buttons_limit: int = 3,
        top_models_limit: int = 10,
    ):
        self.catalog = catalog
        self.store = store
        self.quiz_bank = quiz_bank
        self.rng = rng or random.Random()
        self.search_results_limit = search_results_limit
        self.search_buttons_limit = search_buttons_limit
        self.top_models_limit = top_models_limit

    def handle(self, event: InboundEvent) -> Optional[BotResponse]:
        """
        Dispatch one event. Returns None when there is nothing to send
        (malformed or unknown callback token).
        """
        session = self.store.get_or_create(event.chat_id)
        with session.lock:
            try:
                if event.kind == "command":
                    return self._handle_command(event.payload, session)
                if event.kind == "callback":
                    return self._handle_callback(event.payload, session)
                return self._handle_text(event.payload, session)
            except Exception as e:
                logger.exception(f"Error handling {event.kind} {event.payload!r} for chat {event.chat_id}: {e}")
                return BotResponse(text=views.ERROR_TEXT)

    # --- commands & text ---

    def _handle_command(self, text: str, session: UserSession) -> BotResponse:
        command = normalize_command(text)
        logger.debug(f"Chat {session.chat_id}: command {command!r} in mode {session.mode.value}")

        if command not in COMMANDS:
            logger.debug(f"Unknown command {text!r}")
            return BotResponse(text=views.UNKNOWN_COMMAND_TEXT)

        if command == "/start":
            session.reset()
            logger.info(f"User {session.chat_id} started conversation")
            return BotResponse(text=views.WELCOME_TEXT, show_main_menu=True)
        if command == "/help":
            return BotResponse(text=views.HELP_TEXT)
        if command == "/stats":
            return self._user_stats(session)
        if command == "/search":
            return self._enter_search(session)
        if command == "/compare":
            session.set_mode(Mode.compare)
            return BotResponse(text=views.COMPARE_PROMPT_TEXT)
        if command == "/random":
            return self._random_model(session)
        if command == "/quiz":
            return self._issue_quiz(session)
        if command == "/favorites":
            return self._favorites(session)
        if command == "/brands":
            return self._brand_selection()
        if command == "/categories":
            if session.selected_brand is None:
                return BotResponse(text=views.NO_BRAND_TEXT)
            return self._category_selection(session.selected_brand)

        return BotResponse(text=views.UNKNOWN_COMMAND_TEXT)

    def _handle_text(self, text: str, session: UserSession) -> BotResponse:
        if session.mode == Mode.search:
            return self._search(text, session)
        if session.mode == Mode.compare:
            return self._compare(text, session)

        action = match_menu_label(text)
        if action == "brands":
            return self._brand_selection()
        if action == "search":
            return self._enter_search(session)
        if action == "stats":
            return self._user_stats(session)
        if action == "quiz":
            return self._issue_quiz(session)
        if action == "favorites":
            return self._favorites(session)
        if action == "random":
            return self._random_model(session)
        if action == "top":
            return self._top_models()
        if action == "category_stats":
            return BotResponse(text=views.format_category_stats(self.catalog.category_stats()))

        return BotResponse(text=views.UNKNOWN_TEXT, show_main_menu=True)

    # --- callbacks ---

    def _handle_callback(self, token: str, session: UserSession) -> Optional[BotResponse]:
        action = parse_callback(token)
        if action is None:
            return None
        logger.debug(f"Chat {session.chat_id}: callback {action}")
        return self._dispatch_callback(action, session)

    def _dispatch_callback(self, action: CallbackAction, session: UserSession) -> Optional[BotResponse]:
        if action.action == "brand":
            session.select_brand(action.value)
            views_count = session.record_brand_view(action.value)
            logger.info(f"User {session.chat_id} selected brand {action.value} (views: {views_count})")
            return self._category_selection(action.value)

        if action.action == "category":
            session.select_category(action.value)
            return self.models_page(session.selected_brand, action.value, 0)

        if action.action == "model":
            return self._model_details(action.value, session)

        if action.action == "favorite":
            added = session.toggle_favorite(action.value)
            logger.info(f"User {session.chat_id} {'added' if added else 'removed'} favorite {action.value}")
            return BotResponse(text=views.format_favorite_toggled(action.value, added))

        if action.action == "quiz":
            return self._grade_quiz(action.value, session)

        if action.action == "page":
            return self.models_page(action.brand, action.category, action.page)

        if action.action == "back_to_brands":
            return self._brand_selection()

        if action.action == "back_to_categories":
            if session.selected_brand is None:
                return self._brand_selection()
            return self._category_selection(session.selected_brand)

        if action.action in ("restart_quiz", "next_question"):
            return self._issue_quiz(session)

        if action.action == "main_menu":
            return BotResponse(text=views.MAIN_MENU_TEXT, show_main_menu=True)

        if action.action == "clear_favorites":
            session.clear_favorites()
            logger.info(f"User {session.chat_id} cleared favorites")
            return self._favorites(session)

        return None

    # --- views ---

    def _brand_selection(self) -> BotResponse:
        brands = [(name, *self.catalog.brand_badge(name)) for name in self.catalog.list_brands()]
        return BotResponse(text=views.BRAND_SELECTION_TEXT, buttons=keyboards.brands_keyboard(brands))

    def _category_selection(self, brand: str) -> BotResponse:
        categories = self.catalog.categories_of(brand)
        if not categories:
            logger.warning(f"Unknown brand requested: {brand!r}")
            return BotResponse(
                text=views.format_category_header(brand, self.catalog.describe(brand)),
                buttons=keyboards.categories_keyboard([], None),
            )
        names = list(categories)
        pairs = [(name, len(categories[name])) for name in names]
        return BotResponse(
            text=views.format_category_header(brand, self.catalog.describe(brand)),
            buttons=keyboards.categories_keyboard(pairs, self.rng.choice(names)),
        )

    def models_page(self, brand: Optional[str], category: Optional[str], page: int) -> BotResponse:
        models = self.catalog.models_of(brand, category)
        if not models:
            logger.warning(f"No models for brand={brand!r}, category={category!r}")
            return BotResponse(text=views.format_empty_category(brand, category))

        total_pages = math.ceil(len(models) / PAGE_SIZE)
        page = max(0, min(page, total_pages - 1))
        start = page * PAGE_SIZE
        page_models = models[start:start + PAGE_SIZE]

        return BotResponse(
            text=views.format_models_page(brand, category, page_models, start, page, total_pages),
            buttons=keyboards.models_page_keyboard(brand, category, page_models, page, total_pages),
        )

    def _resolve_brand(self, model: str, session: UserSession) -> Optional[str]:
        brand = session.selected_brand
        if brand and self.catalog.find_category_of_model(brand, model) is not None:
            return brand
        return self.catalog.find_brand_of_model(model)

    def _model_details(self, model: str, session: UserSession) -> BotResponse:
        brand = self._resolve_brand(model, session)
        if brand is None:
            logger.warning(f"Model not found: {model!r}")
            return BotResponse(text=views.format_model_not_found(model))

        is_muscle = self.catalog.is_muscle_car(model)
        is_favorite = model in session.favorites
        # Illustrative figures, not catalog data
        year = 2000 + self.rng.randrange(25)
        horsepower = 400 + self.rng.randrange(400) if is_muscle else 150 + self.rng.randrange(250)
        price = 50000 + self.rng.randrange(100000) if is_muscle else 30000 + self.rng.randrange(50000)

        text = views.format_model_details(
            model=model,
            brand=brand,
            description=self.catalog.describe_model(brand, model),
            year=year,
            horsepower=horsepower,
            price=price,
            is_muscle_car=is_muscle,
            is_favorite=is_favorite,
        )
        category = self.catalog.find_category_of_model(brand, model)
        page_brand = brand if brand != session.selected_brand else None
        return BotResponse(
            text=text,
            buttons=keyboards.model_details_keyboard(model, is_favorite, category, page_brand),
        )

    def _random_model(self, session: UserSession) -> BotResponse:
        model = self.catalog.random_model(self.rng)
        if model is None:
            return BotResponse(text=views.RANDOM_FAILED_TEXT)
        return self._model_details(model, session)

    def _top_models(self) -> BotResponse:
        models = self.catalog.top_models(self.top_models_limit)
        pairs = [(model, self.catalog.find_brand_of_model(model)) for model in models]
        return BotResponse(text=views.format_top_models(pairs))

    def _favorites(self, session: UserSession) -> BotResponse:
        items = [(model, self.catalog.find_brand_of_model(model)) for model in sorted(session.favorites)]
        return BotResponse(
            text=views.format_favorites(items),
            buttons=keyboards.favorites_keyboard(bool(items)),
        )

    def _user_stats(self, session: UserSession) -> BotResponse:
        text = views.format_user_stats(
            brands_viewed=len(session.brand_views),
            correct_answers=session.correct_answers,
            favorites_count=len(session.favorites),
            top_brands=session.top_brands(3),
            model_counts=self.catalog.model_counts(),
        )
        return BotResponse(text=text)

    # --- quiz ---

    def _issue_quiz(self, session: UserSession) -> BotResponse:
        question: QuizQuestion = draw_question(self.quiz_bank, self.rng)
        session.issue_quiz(question.question, question.answer)
        return BotResponse(text=views.format_quiz_question(question), buttons=keyboards.quiz_keyboard(question))

    def _grade_quiz(self, answer: str, session: UserSession) -> BotResponse:
        if not session.has_pending_quiz:
            return BotResponse(
                text=views.format_no_pending_quiz(),
                buttons=keyboards.quiz_result_keyboard(),
                replace_message=True,
            )
        correct_answer = session.current_quiz_answer
        is_correct = session.record_quiz_outcome(answer)
        logger.info(f"User {session.chat_id} answered quiz: {'correct' if is_correct else 'wrong'}")
        return BotResponse(
            text=views.format_quiz_result(answer, correct_answer, is_correct),
            buttons=keyboards.quiz_result_keyboard(),
            replace_message=True,
        )

    # --- single-shot modes ---

    def _enter_search(self, session: UserSession) -> BotResponse:
        session.set_mode(Mode.search)
        return BotResponse(text=views.SEARCH_PROMPT_TEXT)

    def _search(self, query: str, session: UserSession) -> BotResponse:
        results = self.catalog.search_partial(query)
        # back to normal whatever the outcome
        session.set_mode(Mode.normal)
        logger.info(f"User {session.chat_id} searched {query!r}: {len(results)} results")

        text = views.format_search_results(query, results, self.search_results_limit)
        if not results:
            return BotResponse(text=text)
        return BotResponse(
            text=text,
            buttons=keyboards.search_results_keyboard(results[:self.search_buttons_limit]),
        )

    def compare_models(self, first: str, second: str) -> Optional[ModelComparison]:
        brand1 = self.catalog.find_brand_of_model(first)
        brand2 = self.catalog.find_brand_of_model(second)
        if brand1 is None or brand2 is None:
            return None

        items = []
        for model, brand in ((first, brand1), (second, brand2)):
            items.append(ComparedModel(
                model=model,
                brand=brand,
                description=self.catalog.describe_model(brand, model),
                is_muscle_car=self.catalog.is_muscle_car(model),
            ))
        return ModelComparison(
            first=items[0],
            second=items[1],
            both_muscle_cars=items[0].is_muscle_car and items[1].is_muscle_car,
            same_brand=brand1 == brand2,
        )

    def _compare(self, text: str, session: UserSession) -> BotResponse:
        pair = split_compare_query(text)
        if pair is None:
            # stay in compare mode and ask again
            return BotResponse(text=views.COMPARE_ARITY_TEXT)

        comparison = self.compare_models(*pair)
        session.set_mode(Mode.normal)
        if comparison is None:
            logger.warning(f"Compare: unknown model in {pair}")
            return BotResponse(text=views.COMPARE_NOT_FOUND_TEXT)
        return BotResponse(text=views.format_comparison(comparison))
