from dataclasses import dataclass, field
from threading import RLock
from typing import Dict, List, Optional, Set, Tuple
from loguru import logger
from app.fsm.states import Mode


@dataclass
class UserSession:
    """Per-chat state: mode, selections, favorites and quiz progress."""
    chat_id: int
    mode: Mode = Mode.normal
    selected_brand: Optional[str] = None
    selected_category: Optional[str] = None
    favorites: Set[str] = field(default_factory=set)
    brand_views: Dict[str, int] = field(default_factory=dict)
    correct_answers: int = 0
    current_quiz_question: Optional[str] = None
    current_quiz_answer: Optional[str] = None
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    def reset(self) -> None:
        # favorites, views and quiz score survive /start
        self.mode = Mode.normal
        self.selected_brand = None
        self.selected_category = None

    def set_mode(self, mode: Mode) -> None:
        self.mode = mode

    def select_brand(self, brand: Optional[str]) -> None:
        self.selected_brand = brand

    def select_category(self, category: Optional[str]) -> None:
        self.selected_category = category

    def add_favorite(self, model: str) -> None:
        self.favorites.add(model)

    def remove_favorite(self, model: str) -> None:
        self.favorites.discard(model)

    def toggle_favorite(self, model: str) -> bool:
        """Returns True if the model was added, False if it was removed."""
        if model in self.favorites:
            self.remove_favorite(model)
            return False
        self.add_favorite(model)
        return True

    def clear_favorites(self) -> None:
        self.favorites.clear()

    def record_brand_view(self, brand: str) -> int:
        self.brand_views[brand] = self.brand_views.get(brand, 0) + 1
        return self.brand_views[brand]

    def top_brands(self, limit: int = 3) -> List[Tuple[str, int]]:
        return sorted(self.brand_views.items(), key=lambda item: -item[1])[:limit]

    def issue_quiz(self, question: str, answer: str) -> None:
        self.current_quiz_question = question
        self.current_quiz_answer = answer

    @property
    def has_pending_quiz(self) -> bool:
        return self.current_quiz_answer is not None

    def record_quiz_outcome(self, answer: str) -> bool:
        if self.current_quiz_answer is None or answer != self.current_quiz_answer:
            return False
        self.correct_answers += 1
        return True


class SessionStore:
    """
    In-memory chat_id -> UserSession map.
    Sessions are created lazily and live until the process exits.
    """

    def __init__(self):
        self._sessions: Dict[int, UserSession] = {}
        self._lock = RLock()

    def get_or_create(self, chat_id: int) -> UserSession:
        with self._lock:
            session = self._sessions.get(chat_id)
            if session is None:
                session = UserSession(chat_id=chat_id)
                self._sessions[chat_id] = session
                logger.info(f"New session for chat {chat_id}")
            return session

    def __contains__(self, chat_id: int) -> bool:
        with self._lock:
            return chat_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
