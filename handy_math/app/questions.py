"""
Question generation for HandyMath.

Every answer must be showable with one hand, so results are kept in 1..5.
"""

import random
from dataclasses import dataclass
from typing import Optional


ANSWER_MIN = 1
ANSWER_MAX = 5


@dataclass(frozen=True)
class Question:
    left: int
    operator: str  # '+' or '-'
    right: int
    answer: int

    @property
    def operands(self):
        return (self.left, self.right)

    @property
    def text(self) -> str:
        return f"{self.left} {self.operator} {self.right}"

    @property
    def display_text(self) -> str:
        return f"{self.text} = ?"


def generate_question(rng: Optional[random.Random] = None, low: int = 1, high: int = 5) -> Question:
    """
    Draw a random addition or subtraction with a result in 1..5.

    Two operands are sampled uniformly from [low, high] and a coin decides the
    operator. Subtraction reorders the operands to (max, min) so the result is
    never negative. Draws are rejected until the result fits.
    """
    if rng is None:
        rng = random
    if low > high:
        raise ValueError(f"empty operand range [{low}, {high}]")
    if high - low < ANSWER_MIN and 2 * low > ANSWER_MAX:
        raise ValueError(f"operand range [{low}, {high}] cannot produce an answer in "
                         f"{ANSWER_MIN}..{ANSWER_MAX}")

    while True:
        x = rng.randint(low, high)
        y = rng.randint(low, high)
        if rng.random() < 0.5:
            left, op, right = x, '+', y
            result = x + y
        else:
            left, op, right = max(x, y), '-', min(x, y)
            result = left - right
        if ANSWER_MIN <= result <= ANSWER_MAX:
            return Question(left=left, operator=op, right=right, answer=result)
