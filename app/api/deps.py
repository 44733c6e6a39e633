from fastapi import Path, Request

from app.core.config import settings
from app.services.quiz_session import QuizSessionManager
from app.services.round_builder import CatalogSelector
from app.services.round_source import RoundSource


def get_selector(request: Request) -> CatalogSelector:
    return request.app.state.selector


def get_round_source(request: Request) -> RoundSource:
    return request.app.state.round_source


def get_manager(
    request: Request,
    client_id: str = Path(..., pattern=r"^[A-Za-z0-9_-]{1,64}$"),
) -> QuizSessionManager:
    """Один ключ хранилища на клиента."""
    return QuizSessionManager(
        request.app.state.store,
        key=f"{settings.SESSION_KEY_PREFIX}:{client_id}",
        max_rounds=settings.MAX_ROUNDS,
    )
