from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel


class RoundContent(BaseModel):
    """Содержимое одного раунда: кадр, варианты и правильный ответ."""

    correct_entry_id: Union[int, str]
    screenshot: str
    options: List[str]
    correct_answer: str
    cover_url: Optional[str] = None

    class Config:
        frozen = True


class Answer(BaseModel):
    question_index: int  # 0-based, совпадает с позицией в Session.answers
    selected_option: str
    correct_answer: str
    is_correct: bool
    answered_at: datetime

    class Config:
        frozen = True


class Session(BaseModel):
    """Снимок квиза. Любое изменение даёт новый снимок, он целиком пишется в хранилище."""

    id: str
    started_at: datetime
    current_question: int = 1  # 1-based
    score: int = 0
    answers: List[Answer] = []
    round_data: List[Optional[RoundContent]] = []
    is_complete: bool = False
    completed_at: Optional[datetime] = None

    class Config:
        frozen = True
