from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_manager, get_round_source
from app.core.config import settings
from app.models.quiz import Session
from app.schemas.quiz import AnswerIn, AnswerOut, QuizView, RoundOut, SummaryOut
from app.services.quiz_session import (
    MissingRoundDataError,
    QuizError,
    QuizSessionManager,
    RoundNotAnsweredError,
    SessionCompleteError,
    current_answer,
    current_round_content,
    fetch_error_message,
    score_summary,
)
from app.services.round_builder import EmptyCatalogError, NoScreenshotError
from app.services.round_source import RoundFetchError, RoundSource


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quiz", tags=["quiz"])


def _view(session: Session) -> QuizView:
    max_rounds = settings.MAX_ROUNDS
    view = QuizView(
        session_id=session.id,
        current_question=session.current_question,
        max_rounds=max_rounds,
        score=session.score,
        is_complete=session.is_complete,
        answered=False,
    )

    if session.is_complete:
        view.summary = SummaryOut(**score_summary(session, max_rounds))
        return view

    content = current_round_content(session)
    if content is not None:
        view.round = RoundOut(
            question=session.current_question,
            screenshot=content.screenshot,
            options=content.options,
        )

    answer = current_answer(session)
    if answer is not None:
        # после перезагрузки показываем экран с ответом, а не спрашиваем заново
        view.answered = True
        view.selected_option = answer.selected_option
        view.correct_answer = answer.correct_answer
        view.is_correct = answer.is_correct
        view.cover_url = content.cover_url if content else None

    return view


async def _ensure_round(manager: QuizSessionManager, session: Session, source: RoundSource) -> Session:
    if session.is_complete or current_round_content(session) is not None:
        return session
    try:
        return await manager.load_round(session, source, option_count=settings.OPTION_COUNT)
    except RoundFetchError as e:
        code = status.HTTP_504_GATEWAY_TIMEOUT if e.kind == "timeout" else status.HTTP_503_SERVICE_UNAVAILABLE
        raise HTTPException(status_code=code, detail=fetch_error_message(e))
    except (EmptyCatalogError, NoScreenshotError) as e:
        logger.error("Error loading game for session %s: %s", session.id, e)
        raise HTTPException(status_code=503, detail=fetch_error_message(e))


async def _require_session(manager: QuizSessionManager) -> Session:
    session = await manager.load()
    if session is None:
        raise HTTPException(404, "No active quiz session")
    return session


@router.get("/{client_id}", response_model=QuizView)
async def resume_quiz(
    manager: QuizSessionManager = Depends(get_manager),
    source: RoundSource = Depends(get_round_source),
):
    session = await manager.load_or_create()
    session = await _ensure_round(manager, session, source)
    return _view(session)


@router.post("/{client_id}", response_model=QuizView, status_code=status.HTTP_201_CREATED)
async def restart_quiz(
    manager: QuizSessionManager = Depends(get_manager),
    source: RoundSource = Depends(get_round_source),
):
    session = await manager.restart()
    session = await _ensure_round(manager, session, source)
    return _view(session)


@router.post("/{client_id}/answer", response_model=AnswerOut)
async def submit_answer(
    body: AnswerIn,
    manager: QuizSessionManager = Depends(get_manager),
):
    session = await _require_session(manager)
    try:
        session = await manager.submit_answer(session, body.selected_option)
    except (MissingRoundDataError, SessionCompleteError) as e:
        raise HTTPException(status_code=409, detail=str(e))

    answer = current_answer(session)
    if answer is None:
        # submit_answer сохранил ответ в текущий слот, иначе это баг
        logger.error("Session %s has no answer for question %d after submit", session.id, session.current_question)
        raise HTTPException(status_code=500, detail="Answer was not recorded")
    return AnswerOut(
        session_id=session.id,
        question=session.current_question,
        selected_option=answer.selected_option,
        correct_answer=answer.correct_answer,
        is_correct=answer.is_correct,
        score=session.score,
    )


@router.post("/{client_id}/next", response_model=QuizView)
async def next_question(
    manager: QuizSessionManager = Depends(get_manager),
    source: RoundSource = Depends(get_round_source),
):
    session = await _require_session(manager)
    try:
        session = await manager.advance(session)
    except RoundNotAnsweredError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except QuizError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session = await _ensure_round(manager, session, source)
    return _view(session)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_quiz(manager: QuizSessionManager = Depends(get_manager)):
    await manager.clear()
