from aiogram import Router, F
from aiogram.types import Message
from app.engine.router import EventRouter
from app.models.dto import InboundEvent
from app.utils.delivery import deliver

router = Router()


@router.message(F.text)
async def handle_text(message: Message, event_router: EventRouter):
    """
    Free text: menu labels in normal mode, the query in search/compare mode.
    """
    response = event_router.handle(InboundEvent(kind="text", chat_id=message.chat.id, payload=message.text))
    if response is not None:
        await deliver(message, response)
