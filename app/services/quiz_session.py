from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from app.models.quiz import Answer, RoundContent, Session
from app.services.round_source import RoundFetchError, RoundSource
from app.services.session_store import BlobStore, StoreIOError


logger = logging.getLogger(__name__)


STORAGE_KEY = "videogame-quiz-session"
DEFAULT_MAX_ROUNDS = 10


class QuizError(Exception):
    """Понятные ошибки квиза (нет данных раунда, квиз завершён и т.д.)."""
    pass


class MissingRoundDataError(QuizError):
    pass


class SessionCompleteError(QuizError):
    pass


class RoundNotAnsweredError(QuizError):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # старые/чужие снимки могут прийти без таймзоны, считаем их UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def validate_integrity(
    session: Session,
    now: Optional[datetime] = None,
    max_rounds: Optional[int] = None,
) -> bool:
    """Структурная проверка снимка, прочитанного из хранилища.

    Счёт, флаги is_correct и завершённость должны сходиться с журналом
    ответов; с max_rounds дополнительно проверяем границы квиза.
    """
    if not session.id or not session.started_at:
        return False

    for i, answer in enumerate(session.answers):
        if answer.question_index != i:
            return False
        if answer.is_correct != (answer.selected_option == answer.correct_answer):
            return False

    if session.score != sum(1 for a in session.answers if a.is_correct):
        return False

    answered = len(session.answers)
    if session.current_question != answered + 1:
        # допустимо только "ответили, но ещё не перешли дальше"
        if not (answered and session.current_question == answered):
            return False

    if session.is_complete != (session.completed_at is not None):
        return False

    if max_rounds is not None:
        if answered > max_rounds:
            return False
        if session.is_complete:
            if answered != max_rounds or session.current_question != max_rounds + 1:
                return False
        elif session.current_question > max_rounds:
            return False

    now = _as_utc(now or utcnow())
    started_at = _as_utc(session.started_at)
    if started_at > now:
        return False

    for answer in session.answers:
        answered_at = _as_utc(answer.answered_at)
        if answered_at < started_at or answered_at > now:
            return False

    if session.completed_at is not None:
        completed_at = _as_utc(session.completed_at)
        if completed_at < started_at or completed_at > now:
            return False

    return True


def current_answer(session: Session) -> Optional[Answer]:
    idx = session.current_question - 1
    if idx < len(session.answers) and session.answers[idx].question_index == idx:
        return session.answers[idx]
    return None


def is_current_round_answered(session: Session) -> bool:
    return current_answer(session) is not None


def current_round_content(session: Session) -> Optional[RoundContent]:
    idx = session.current_question - 1
    if 0 <= idx < len(session.round_data):
        return session.round_data[idx]
    return None


def fetch_error_message(error: Exception) -> str:
    """Текст для игрока по классифицированной ошибке загрузки раунда."""
    if isinstance(error, RoundFetchError):
        if error.kind == "timeout":
            return "Request timed out. The server is taking too long to respond. Please try again."
        if error.kind == "network":
            return "Network connection issue. Please check your internet connection and try again."
        if error.kind == "http-status":
            return f"Server error: {error}. Please try again later."
    return str(error) or "Failed to load game. Please try again."


def score_summary(session: Session, max_rounds: int) -> Dict[str, object]:
    percentage = round(session.score / max_rounds * 100) if max_rounds else 0
    if percentage == 100:
        message = "Perfect!"
    elif percentage >= 80:
        message = "Excellent!"
    elif percentage >= 60:
        message = "Good Job!"
    elif percentage >= 40:
        message = "Not Bad!"
    else:
        message = "Keep Trying!"
    return {
        "score": session.score,
        "max_rounds": max_rounds,
        "percentage": percentage,
        "message": message,
    }


class QuizSessionManager:
    """Квиз из N раундов, который переживает перезагрузку страницы.

    Каждая операция берёт снимок Session, возвращает новый и сразу
    целиком сохраняет его в хранилище под одним ключом клиента.
    Ошибки записи в хранилище не фатальны: логируем и продолжаем.
    """

    def __init__(
        self,
        store: BlobStore,
        key: str = STORAGE_KEY,
        clock: Callable[[], datetime] = utcnow,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
    ):
        self.store = store
        self.key = key
        self.clock = clock
        self.max_rounds = max_rounds

    # ---------- хранилище ----------
    async def _persist(self, session: Session) -> Session:
        try:
            await self.store.set(self.key, session.model_dump_json().encode("utf-8"))
        except StoreIOError as e:
            logger.error("Failed to save quiz session %s: %s", session.id, e)
        return session

    async def clear(self) -> None:
        try:
            await self.store.clear(self.key)
        except StoreIOError as e:
            logger.error("Failed to clear quiz session: %s", e)

    async def load(self) -> Optional[Session]:
        """Читаем снимок. Любая проблема -> None (и битый снимок удаляется)."""
        try:
            raw = await self.store.get(self.key)
        except StoreIOError as e:
            logger.error("Failed to load quiz session: %s", e)
            return None

        if not raw:
            return None

        try:
            session = Session.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Stored quiz session is malformed, discarding: %s", e.errors()[:1])
            await self.clear()
            return None

        if not validate_integrity(session, now=self.clock(), max_rounds=self.max_rounds):
            logger.warning("Stored quiz session %s failed integrity check, discarding", session.id)
            await self.clear()
            return None

        return session

    # ---------- жизненный цикл ----------
    async def create(self) -> Session:
        session = Session(id=str(uuid.uuid4()), started_at=self.clock())
        logger.info("New quiz session %s", session.id)
        return await self._persist(session)

    async def restart(self) -> Session:
        await self.clear()
        return await self.create()

    async def load_or_create(self) -> Session:
        session = await self.load()
        if session is None:
            session = await self.create()
        return session

    async def record_round_content(
        self,
        session: Session,
        round_index: int,
        content: RoundContent,
    ) -> Session:
        if round_index < 0:
            raise ValueError("round_index must be >= 0")

        round_data: List[Optional[RoundContent]] = list(session.round_data)
        # обычно раунды идут по порядку, но пропуски забиваем пустыми слотами
        while len(round_data) <= round_index:
            round_data.append(None)
        round_data[round_index] = content

        updated = session.model_copy(update={"round_data": round_data})
        return await self._persist(updated)

    async def load_round(self, session: Session, source: RoundSource, option_count: int = 4) -> Session:
        """Берём раунд у источника и кладём в текущий слот. Ошибки не глотаем."""
        if session.is_complete:
            raise SessionCompleteError("Quiz is already complete")
        content = await source.fetch(option_count=option_count)
        return await self.record_round_content(session, session.current_question - 1, content)

    async def submit_answer(self, session: Session, selected_option: str) -> Session:
        if session.is_complete:
            raise SessionCompleteError("Quiz is already complete")

        idx = session.current_question - 1

        # если уже отвечено, просто возвращаем текущее состояние (без модификаций)
        if is_current_round_answered(session):
            logger.info("Round %d of session %s already answered", idx, session.id)
            return session

        content = session.round_data[idx] if idx < len(session.round_data) else None
        if content is None:
            raise MissingRoundDataError("No game data found for current question")

        is_correct = selected_option == content.correct_answer
        answer = Answer(
            question_index=idx,
            selected_option=selected_option,
            correct_answer=content.correct_answer,
            is_correct=is_correct,
            answered_at=self.clock(),
        )
        updated = session.model_copy(
            update={
                "score": session.score + 1 if is_correct else session.score,
                "answers": [*session.answers, answer],
            }
        )
        return await self._persist(updated)

    async def advance(self, session: Session, max_rounds: Optional[int] = None) -> Session:
        max_rounds = max_rounds or self.max_rounds
        if session.is_complete:
            # квиз уже закончен: ничего не меняем, completed_at не трогаем
            return session

        if not is_current_round_answered(session):
            raise RoundNotAnsweredError("Current question has not been answered yet")

        update: Dict[str, object] = {"current_question": session.current_question + 1}
        if session.current_question + 1 > max_rounds:
            update["is_complete"] = True
            update["completed_at"] = self.clock()
            logger.info("Quiz session %s complete, score %d/%d", session.id, session.score, max_rounds)

        return await self._persist(session.model_copy(update=update))
