import random
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: Tuple[str, ...]
    answer: str


QUIZ_BANK: Tuple[QuizQuestion, ...] = (
    QuizQuestion(
        question="Какая модель BMW является самым продаваемым седаном?",
        options=("3 Series", "5 Series", "7 Series", "1 Series"),
        answer="3 Series",
    ),
    QuizQuestion(
        question="Какой Dodge известен как 'Hellcat'?",
        options=("Charger", "Challenger", "Durango", "Viper"),
        answer="Charger",
    ),
    QuizQuestion(
        question="Какая модель BMW имеет обозначение M3?",
        options=("BMW M3", "BMW X3", "BMW Z4", "BMW i8"),
        answer="BMW M3",
    ),
    QuizQuestion(
        question="Какой Dodge имеет версию 'Demon'?",
        options=("Challenger", "Charger", "Ram", "Durango"),
        answer="Challenger",
    ),
)


def draw_question(
    bank: Tuple[QuizQuestion, ...] = QUIZ_BANK,
    rng: Optional[random.Random] = None,
) -> QuizQuestion:
    """Uniform draw, repeats allowed."""
    return (rng or random).choice(bank)
