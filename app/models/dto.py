from pydantic import BaseModel
from typing import List, Optional, Literal


class InboundEvent(BaseModel):
    kind: Literal["command", "text", "callback"]
    chat_id: int
    payload: str

    @classmethod
    def from_text(cls, chat_id: int, text: str) -> "InboundEvent":
        kind = "command" if text.startswith("/") else "text"
        return cls(kind=kind, chat_id=chat_id, payload=text)

    @classmethod
    def from_callback(cls, chat_id: int, token: str) -> "InboundEvent":
        return cls(kind="callback", chat_id=chat_id, payload=token)


class Button(BaseModel):
    label: str
    token: str


class BotResponse(BaseModel):
    text: str
    buttons: Optional[List[List[Button]]] = None
    replace_message: bool = False  # edit the message the button belongs to
    show_main_menu: bool = False   # attach the reply keyboard with menu labels


class ComparedModel(BaseModel):
    model: str
    brand: str
    description: str
    is_muscle_car: bool


class ModelComparison(BaseModel):
    first: ComparedModel
    second: ComparedModel
    both_muscle_cars: bool
    same_brand: bool
