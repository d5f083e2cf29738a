"""MapStyle Studio - interactive map style editor service.

Main FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from mapstyle import InMemoryRenderer, StyleEditor, Viewport
from mapstyle.basestyles import BaseStyleLoader
from mapstyle.errors import StyleEngineError
from mapstyle.presets import BASE_STYLE_URLS, DEFAULT_BASE_STYLE
from studio.config import Settings, settings as default_settings
from studio.routers.style import router as style_router

# Failure kind -> HTTP status
_STATUS_BY_KIND = {
    "UnknownLayer": 404,
    "UnknownVersion": 404,
    "FetchFailure": 502,
    "RendererRejected": 409,
    "ProtectedLayer": 409,
}


def build_editor(config: Settings) -> StyleEditor:
    """Create a renderer on the configured base style and load the editor."""
    base_style = config.initial_base_style
    if base_style not in BASE_STYLE_URLS:
        logger.warning(f"Unknown initial base style {base_style!r}, using {DEFAULT_BASE_STYLE}")
        base_style = DEFAULT_BASE_STYLE

    renderer = InMemoryRenderer(
        style=BASE_STYLE_URLS[base_style],
        style_loader=BaseStyleLoader(config.styles_dir),
        multi_light=config.multi_light,
    )
    renderer.set_viewport(Viewport(
        center=[config.map_center_lng, config.map_center_lat],
        zoom=config.map_zoom,
        pitch=config.map_pitch,
        bearing=config.map_bearing,
    ))
    editor = StyleEditor(
        renderer,
        fetch_timeout=config.fetch_timeout,
        user_agent=config.user_agent,
    )
    editor.load()
    editor.settings.apply_light_preset(editor.named_settings.light_preset)
    return editor


def create_app(config: Settings | None = None) -> FastAPI:
    """Build the FastAPI app with a freshly loaded style editor."""
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info(f"  {config.app_name} v0.1.0 - INITIALIZING")
        logger.info("=" * 60)
        if getattr(app.state, "editor", None) is None:
            app.state.editor = build_editor(config)
        logger.info(f"Base style: {app.state.editor.named_settings.base_style}")
        yield
        logger.info(f"{config.app_name} shutting down...")

    app = FastAPI(
        title=config.app_name,
        description="Interactive map style editor",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StyleEngineError)
    async def style_engine_error(request: Request, exc: StyleEngineError):
        status = _STATUS_BY_KIND.get(exc.kind, 400)
        logger.warning(f"{request.method} {request.url.path} failed: {exc.kind}: {exc}")
        return JSONResponse(status_code=status, content={"error": exc.kind, "detail": str(exc)})

    app.include_router(style_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "operational", "version": "0.1.0", "system": config.app_name}

    return app


app = create_app()
