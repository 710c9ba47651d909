from aiogram import Router, F
from aiogram.types import Message
from app.engine.router import EventRouter
from app.models.dto import InboundEvent
from app.utils.delivery import deliver
from loguru import logger

router = Router()


@router.message(F.text.startswith("/"))
async def handle_command(message: Message, event_router: EventRouter):
    """
    Slash commands: /start, /help, /search, /compare and the rest.
    """
    logger.info(f"User {message.chat.id} sent command {message.text[:50]!r}")

    response = event_router.handle(InboundEvent.from_text(message.chat.id, message.text))
    if response is not None:
        await deliver(message, response)
