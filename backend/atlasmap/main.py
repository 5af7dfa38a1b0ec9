"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from atlasmap import __version__
from atlasmap.config import settings

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.atlasmap_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="AtlasMap",
        description="Similarity graph, community detection and hierarchical force layout for item catalogs",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Importing the engine package registers every stage strategy
    import atlasmap.engine  # noqa: F401

    from atlasmap.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
