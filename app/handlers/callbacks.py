from aiogram import Router
from aiogram.exceptions import TelegramAPIError
from aiogram.types import CallbackQuery, Message
from app.engine.router import EventRouter
from app.models.dto import InboundEvent
from app.utils.delivery import deliver
from loguru import logger

router = Router()


@router.callback_query()
async def handle_callback(callback: CallbackQuery, event_router: EventRouter):
    """
    Inline button presses.
    Malformed tokens are acknowledged and otherwise ignored.
    """
    message = callback.message
    if callback.data is None or not isinstance(message, Message):
        logger.warning(f"Callback {callback.id} without data or accessible message, ignoring")
        await _acknowledge(callback)
        return

    response = event_router.handle(InboundEvent.from_callback(message.chat.id, callback.data))
    await _acknowledge(callback)

    if response is None:
        return
    await deliver(message, response)


async def _acknowledge(callback: CallbackQuery):
    try:
        await callback.answer()
    except TelegramAPIError as e:
        logger.warning(f"Could not answer callback {callback.id}: {e}")
