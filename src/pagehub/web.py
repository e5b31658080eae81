from __future__ import annotations

import logging
from html import escape

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .config import ClientConfig
from .connections import ServiceConnections
from .logging_config import set_trace_id, trace_id_from_header
from .view import GeneratorView
from .view_registry import ViewRegistry

logger = logging.getLogger(__name__)

SESSION_KEY = "view_key"

PLACEHOLDER = (
    "Describe the website you want to generate (e.g., 'A simple portfolio website "
    "for a graphic designer showing off their best work with a clean, minimalist "
    "design, dark theme, and a contact form.')."
)


def render_page(view: GeneratorView) -> str:
    state = view.state
    if state.user is not None:
        identity_block = (
            '<p class="muted">Logged in as: '
            f'<span class="uid">{escape(state.user.uid)}</span></p>'
        )
    else:
        identity_block = '<p class="muted">Signing in anonymously...</p>'

    # Blank descriptions are rejected on submit, so only identity and loading gate the form.
    disabled = " disabled" if state.loading or state.user is None else ""
    button_label = "Generating..." if state.loading else "Generate Website"

    error_block = f'<p class="error">{escape(state.error)}</p>' if state.error else ""
    url_block = ""
    if state.url:
        url = escape(state.url, quote=True)
        url_block = (
            '<div class="result">'
            "<p><strong>Website Generated!</strong></p>"
            f'<a href="{url}" target="_blank" rel="noopener noreferrer">{url}</a>'
            "</div>"
        )

    return f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8" />
        <meta name="viewport" content="width=device-width, initial-scale=1.0" />
        <title>PageHub.ai Generator</title>
        <style>
            body {{
                margin: 0;
                min-height: 100vh;
                display: flex;
                align-items: center;
                justify-content: center;
                background: #f3f4f6;
                font-family: system-ui, sans-serif;
            }}
            .card {{
                background: #ffffff;
                padding: 24px;
                border-radius: 8px;
                box-shadow: 0 10px 15px rgba(0, 0, 0, 0.1);
                width: 100%;
                max-width: 28rem;
            }}
            h1 {{ text-align: center; color: #1f2937; font-size: 1.5rem; }}
            .muted {{ text-align: center; color: #4b5563; font-size: 0.875rem; }}
            .uid {{ font-family: monospace; color: #1d4ed8; word-break: break-all; }}
            textarea {{ width: 100%; padding: 12px; box-sizing: border-box; resize: vertical; }}
            button {{
                width: 100%;
                margin-top: 16px;
                padding: 12px;
                border: none;
                border-radius: 6px;
                background: #2563eb;
                color: #ffffff;
                font-weight: 600;
                cursor: pointer;
            }}
            button:disabled {{ opacity: 0.5; cursor: not-allowed; }}
            .error {{ color: #dc2626; text-align: center; font-size: 0.875rem; }}
            .result {{
                margin-top: 16px;
                padding: 16px;
                background: #dcfce7;
                border: 1px solid #86efac;
                border-radius: 6px;
                text-align: center;
                word-break: break-all;
            }}
        </style>
    </head>
    <body>
        <div class="card">
            <h1>PageHub.ai Generator</h1>
            {identity_block}
            <form method="post" action="/generate">
                <textarea name="description" rows="5" placeholder="{escape(PLACEHOLDER, quote=True)}"{disabled}>{escape(state.description)}</textarea>
                <button type="submit"{disabled}>{button_label}</button>
            </form>
            {error_block}
            {url_block}
        </div>
    </body>
    </html>
    """


def create_app(config: ClientConfig, connections: ServiceConnections | None = None) -> FastAPI:
    connections = connections or ServiceConnections(config)

    def build_view() -> GeneratorView:
        identity = connections.open_identity()
        return GeneratorView(
            config=config,
            identity=identity,
            invoke=connections.generate_website_invoker(identity),
        )

    registry = ViewRegistry(build_view)

    app = FastAPI(title="PageHub.ai Generator", version="0.1.0")
    app.add_middleware(SessionMiddleware, secret_key=config.session_secret)
    app.state.config = config
    app.state.connections = connections
    app.state.views = registry

    @app.middleware("http")
    async def trace_context(request: Request, call_next):
        set_trace_id(
            trace_id_from_header(request.headers.get("X-Cloud-Trace-Context"), config.project_id)
        )
        return await call_next(request)

    async def current_view(request: Request) -> GeneratorView:
        key = request.session.get(SESSION_KEY)
        if not key:
            key = registry.new_key()
            request.session[SESSION_KEY] = key
        view = registry.get_or_create(key)
        await view.mount()
        return view

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request) -> HTMLResponse:
        view = await current_view(request)
        return HTMLResponse(render_page(view))

    @app.post("/generate", response_class=HTMLResponse)
    async def generate(request: Request, description: str = Form(default="")) -> HTMLResponse:
        view = await current_view(request)
        if view.state.loading:
            raise HTTPException(status_code=409, detail="A website is already being generated")

        view.state.description = description
        logger.info("Generation requested", extra={"description_length": len(description)})
        await view.submit()
        return HTMLResponse(render_page(view))

    @app.get("/state")
    async def state(request: Request) -> JSONResponse:
        view = await current_view(request)
        payload = view.state.model_dump(
            mode="json",
            exclude={"user": {"id_token", "refresh_token", "expires_at"}},
        )
        payload["can_submit"] = view.can_submit
        return JSONResponse(payload)

    @app.post("/reset")
    async def reset(request: Request) -> JSONResponse:
        key = request.session.pop(SESSION_KEY, None)
        if key:
            registry.discard(key)
        return JSONResponse({"status": "ok"})

    @app.get("/health")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    @app.on_event("shutdown")
    async def shutdown() -> None:
        registry.clear()
        await connections.aclose()

    return app


__all__ = ["create_app", "render_page"]
