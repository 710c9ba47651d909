from typing import Callable, Dict, Any, Awaitable, Union
from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message
from loguru import logger


class UserActivityMiddleware(BaseMiddleware):
    """Logs every incoming message and button press."""

    async def __call__(
        self,
        handler: Callable[[Union[Message, CallbackQuery], Dict[str, Any]], Awaitable[Any]],
        event: Union[Message, CallbackQuery],
        data: Dict[str, Any]
    ) -> Any:
        user = event.from_user
        user_id = user.id if user else None

        if isinstance(event, CallbackQuery):
            logger.debug(f"User {user_id} pressed {event.data!r}")
        elif isinstance(event, Message):
            logger.debug(f"User {user_id} wrote {(event.text or '<non-text>')[:100]!r}")

        return await handler(event, data)
