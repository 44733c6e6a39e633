from typing import List, Optional

from pydantic import BaseModel


class RoundOut(BaseModel):
    question: int
    screenshot: str
    options: List[str]


class SummaryOut(BaseModel):
    score: int
    max_rounds: int
    percentage: int
    message: str


class QuizView(BaseModel):
    session_id: str
    current_question: int
    max_rounds: int
    score: int
    is_complete: bool
    answered: bool
    round: Optional[RoundOut] = None
    # заполняются только после ответа на текущий раунд
    selected_option: Optional[str] = None
    correct_answer: Optional[str] = None
    is_correct: Optional[bool] = None
    cover_url: Optional[str] = None
    summary: Optional[SummaryOut] = None


class AnswerIn(BaseModel):
    selected_option: str


class AnswerOut(BaseModel):
    session_id: str
    question: int
    selected_option: str
    correct_answer: str
    is_correct: bool
    score: int


class StatsOut(BaseModel):
    total_games: int
    year_range: List[int]
    average_rating: float
    year_counts: dict
    decade_counts: dict
