from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from fastapi import Depends, FastAPI, Form, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, ORJSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from adapters.token.state_codec import StateCodec
from app.config import AppSettings, is_absolute_url, load_settings
from app.draw_wiring import build_random_source
from domain.models import Pool
from domain.ports.randomness import RandomIndexSource
from domain.services.draw_engine import DrawEngine
from domain.services.draw_links import DrawLinks, DrawOutcome, LinkEncodingError, LinkView

TEMPLATES_DIR = Path(__file__).parent / "web" / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
logger = logging.getLogger(__name__)

UNRECOGNIZED_LINK = "Unrecognized or corrupted draw link"


@dataclass(frozen=True)
class DrawContext:
    settings: AppSettings
    pool: Pool
    codec: StateCodec
    engine: DrawEngine

    def links_for(self, request: Request) -> DrawLinks:
        return DrawLinks(
            codec=self.codec,
            engine=self.engine,
            links=self.settings.draw.build_link_builder(share_base_url(self.settings, request)),
        )


class DrawRequest(BaseModel):
    state: str


def create_app(
    settings: AppSettings,
    *,
    random_source: RandomIndexSource | None = None,
) -> FastAPI:
    app = FastAPI(title=settings.draw.title)

    pool = settings.draw.build_pool()
    context = DrawContext(
        settings=settings,
        pool=pool,
        codec=StateCodec(pool),
        engine=DrawEngine(pool, random_source or build_random_source(settings)),
    )
    app.state.context = context

    @app.exception_handler(LinkEncodingError)
    def link_encoding_failed(request: Request, exc: LinkEncodingError) -> ORJSONResponse:
        logger.error("Cannot publish draw link: %s", exc)
        return ORJSONResponse({"detail": "Cannot publish a draw link"}, status_code=500)

    def render_draw_template(
        request: Request,
        template_name: str,
        template_context: dict[str, Any],
        status_code: int = 200,
    ) -> HTMLResponse:
        context_data = dict(template_context)
        context_data.update(
            {
                "request": request,
                "settings": settings,
                "pool": pool,
            }
        )
        return templates.TemplateResponse(
            request, template_name, context_data, status_code=status_code
        )

    @app.get("/", response_class=HTMLResponse)
    def index(
        request: Request,
        context: DrawContext = Depends(get_context),
    ) -> HTMLResponse:
        token = request.query_params.get(settings.draw.state_param)
        if not token:
            return render_draw_template(request, "host.html", {})
        view = context.links_for(request).inspect(token)
        if view is None:
            logger.warning("Unrecognized draw token on page load: %r", token)
        return render_draw_template(
            request,
            "draw.html",
            {"token": token, "link": view, "outcome": None},
        )

    @app.post("/links")
    def create_link(
        request: Request,
        context: DrawContext = Depends(get_context),
    ) -> RedirectResponse:
        view = context.links_for(request).create(now_ms())
        return RedirectResponse(url=view.url, status_code=303)

    @app.post("/draw", response_class=HTMLResponse)
    def draw_page(
        request: Request,
        state: str = Form(default=""),
        context: DrawContext = Depends(get_context),
    ) -> HTMLResponse:
        outcome = context.links_for(request).draw(state)
        if outcome is None:
            logger.warning("Unrecognized draw token on draw: %r", state)
            return render_draw_template(
                request,
                "draw.html",
                {"token": state, "link": None, "outcome": None},
                status_code=400,
            )
        return render_draw_template(
            request,
            "draw.html",
            {"token": outcome.link.token, "link": outcome.link, "outcome": outcome},
        )

    @app.get("/api/pool")
    def api_pool(context: DrawContext = Depends(get_context)) -> ORJSONResponse:
        return ORJSONResponse(
            {
                "size": context.pool.size,
                "full_mask": context.pool.full_mask,
                "items": [item.to_dict() for item in context.pool],
            }
        )

    @app.post("/api/links")
    def api_create_link(
        request: Request,
        context: DrawContext = Depends(get_context),
    ) -> ORJSONResponse:
        view = context.links_for(request).create(now_ms())
        return ORJSONResponse(view.to_dict(), status_code=201)

    @app.get("/api/state")
    def api_state(
        request: Request,
        state: str = Query(default=""),
        context: DrawContext = Depends(get_context),
    ) -> ORJSONResponse:
        view = context.links_for(request).inspect(state)
        return ORJSONResponse(require_link(view, state).to_dict())

    @app.post("/api/draw")
    def api_draw(
        request: Request,
        payload: DrawRequest,
        context: DrawContext = Depends(get_context),
    ) -> ORJSONResponse:
        outcome = context.links_for(request).draw(payload.state)
        return ORJSONResponse(require_outcome(outcome, payload.state).to_dict())

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


def get_context(request: Request) -> DrawContext:
    return cast(DrawContext, request.app.state.context)


def now_ms() -> int:
    return int(time.time() * 1000)


def share_base_url(settings: AppSettings, request: Request) -> str:
    configured = settings.draw.public_base_url
    if is_absolute_url(configured):
        return configured
    origin = str(request.base_url).rstrip("/")
    return f"{origin}{configured}"


def require_link(view: LinkView | None, token: str) -> LinkView:
    if view is None:
        logger.warning("Unrecognized draw token: %r", token)
        raise HTTPException(status_code=400, detail=UNRECOGNIZED_LINK)
    return view


def require_outcome(outcome: DrawOutcome | None, token: str) -> DrawOutcome:
    if outcome is None:
        logger.warning("Unrecognized draw token: %r", token)
        raise HTTPException(status_code=400, detail=UNRECOGNIZED_LINK)
    return outcome


app = create_app(load_settings())
