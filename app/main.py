import logging
import random
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import game, quiz
from app.core.config import ROUND_SOURCE_URL, settings
from app.core.logging_config import configure_logging
from app.models.catalog import Catalog
from app.services.catalog_loader import load_catalog
from app.services.round_builder import CatalogSelector, SelectionPolicy
from app.services.round_source import LocalRoundSource, RemoteRoundSource, RoundSource
from app.services.session_store import BlobStore, build_blob_store


logger = logging.getLogger(__name__)


def _policy_from_settings() -> SelectionPolicy:
    return SelectionPolicy(
        year_from=settings.YEAR_FROM,
        year_to=settings.YEAR_TO,
        high_rating=settings.HIGH_RATING,
        relaxed_rating=settings.RELAXED_RATING,
    )


def create_app(
    *,
    catalog: Optional[Catalog] = None,
    store: Optional[BlobStore] = None,
    round_source: Optional[RoundSource] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """Каталог, хранилище и источник раундов можно передать явно (тесты)."""
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Screenshot Guesser Backend",
        version="0.1.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(game.router)
    app.include_router(quiz.router)

    app.state.catalog = catalog
    app.state.store = store
    app.state.round_source = round_source
    app.state.selector = None

    def _wire(cat: Catalog) -> None:
        app.state.catalog = cat
        app.state.selector = CatalogSelector(
            cat,
            _policy_from_settings(),
            rng or random.Random(settings.RNG_SEED),
        )
        if app.state.round_source is None:
            if ROUND_SOURCE_URL:
                app.state.round_source = RemoteRoundSource(ROUND_SOURCE_URL, timeout=settings.ROUND_FETCH_TIMEOUT)
            else:
                app.state.round_source = LocalRoundSource(app.state.selector)

    if catalog is not None:
        _wire(catalog)

    @app.on_event("startup")
    async def startup():
        if app.state.selector is None:
            _wire(load_catalog(settings.CATALOG_PATH))

        if app.state.store is None:
            if settings.SESSION_STORE.lower() == "sql":
                from app.core.db import wait_for_db

                await wait_for_db()
            app.state.store = build_blob_store(settings)

        logger.info(
            "Ready: %d games, session store %s",
            len(app.state.catalog), type(app.state.store).__name__,
        )

    @app.get("/health")
    async def health():
        cat = app.state.catalog
        return {"status": "ok", "games": len(cat) if cat is not None else 0}

    return app


app = create_app()
