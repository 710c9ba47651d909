from typing import Optional, Union
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError
from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    Message,
    ReplyKeyboardMarkup,
)
from loguru import logger
from app.models.dto import BotResponse
from app.utils.response_helpers import ERROR_TEXT
from app.utils.text_parsers import MAIN_MENU_LAYOUT


Markup = Union[InlineKeyboardMarkup, ReplyKeyboardMarkup]


def main_menu_markup() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=label) for label in row] for row in MAIN_MENU_LAYOUT],
        resize_keyboard=True,
        one_time_keyboard=False,
    )


def inline_markup(response: BotResponse) -> Optional[InlineKeyboardMarkup]:
    if not response.buttons:
        return None
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text=button.label, callback_data=button.token) for button in row]
            for row in response.buttons
        ]
    )


def build_markup(response: BotResponse) -> Optional[Markup]:
    """
    Inline buttons win over the reply keyboard: a message carries one markup.
    """
    markup = inline_markup(response)
    if markup is None and response.show_main_menu:
        return main_menu_markup()
    return markup


async def send_response(message: Message, response: BotResponse) -> bool:
    try:
        await message.answer(
            response.text,
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=build_markup(response),
        )
        return True
    except TelegramAPIError as e:
        logger.error(f"Failed to send message to chat {message.chat.id}: {e}")
        return False


async def edit_response(message: Message, response: BotResponse) -> bool:
    try:
        await message.edit_text(
            response.text,
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=inline_markup(response),
        )
        return True
    except TelegramAPIError as e:
        logger.error(f"Failed to edit message {message.message_id} in chat {message.chat.id}: {e}")
        await send_response(message, BotResponse(text=ERROR_TEXT))
        return False


async def deliver(message: Message, response: BotResponse) -> bool:
    """Send or edit depending on the response. Failures are logged, never retried."""
    if response.replace_message:
        return await edit_response(message, response)
    return await send_response(message, response)
