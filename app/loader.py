from aiogram import Bot, Dispatcher
from aiogram.types import TelegramObject
from typing import Any, Awaitable, Callable
from app.config import Settings
from app.engine.router import EventRouter
from app.fsm.session import SessionStore
from app.utils.catalog import build_catalog
from app.utils.logging import setup_logging
from app.middlewares.activity import UserActivityMiddleware
from app.handlers import (
    commands,
    messages,
    callbacks,
)
from loguru import logger


class DependencyMiddleware:
    """Middleware to inject dependencies into handlers."""

    def __init__(self, event_router: EventRouter):
        self.event_router = event_router

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any]
    ) -> Any:
        data["event_router"] = self.event_router
        return await handler(event, data)


def build_event_router(settings: Settings) -> EventRouter:
    """
    Build the catalog and the session store once and wire them into the router.
    """
    catalog = build_catalog()
    brand_count = len(catalog.list_brands())
    if brand_count == 0:
        logger.error("❌ CRITICAL: Catalog is empty!")
        raise RuntimeError("Catalog is empty - cannot start bot!")
    logger.info(f"✅ CarCatalog initialized: {brand_count} brands, {sum(catalog.model_counts().values())} entries")

    store = SessionStore()
    return EventRouter(
        catalog,
        store,
        search_results_limit=settings.SEARCH_RESULTS_LIMIT,
        search_buttons_limit=settings.SEARCH_BUTTONS_LIMIT,
        top_models_limit=settings.TOP_MODELS_LIMIT,
    )


def load_bot() -> tuple[Bot, Dispatcher]:
    """
    Load bot, dispatcher, and register all handlers.
    Returns (bot, dispatcher) tuple.
    """
    # Load settings
    settings = Settings()

    # Setup logging
    setup_logging(settings)
    logger.info("Settings loaded")

    # Create bot and dispatcher
    bot = Bot(token=settings.BOT_TOKEN)
    dp = Dispatcher()

    event_router = build_event_router(settings)

    # Activity logging first, then dependency injection
    for observer in (dp.message, dp.callback_query):
        observer.middleware(UserActivityMiddleware())
        observer.middleware(DependencyMiddleware(event_router))

    # Register routers; commands must come before free text
    dp.include_router(commands.router)
    dp.include_router(messages.router)
    dp.include_router(callbacks.router)

    logger.info("All handlers registered")

    return bot, dp
