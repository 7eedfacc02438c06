"""FastAPI application exposing the fenceplus pipeline as a local JSON API."""

import secrets
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from .. import __version__
from ..core.directives import directives_to_data, expand_line_ranges


class FenceRequest(BaseModel):
    line: str


class ExpandRequest(BaseModel):
    payload: str


class DecorationsRequest(BaseModel):
    text: str
    from_: int | None = Field(None, alias="from")
    to: int | None = None


def create_app(runtime: Any, token: str | None = None, enable_cors: bool = False) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime instance with settings, reader and renderer
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="fenceplus API",
        description="Code block directives, decorations and reading-view rendering",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or credentials.credentials != token:
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    @app.get("/health")
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        return {"status": "ok", "version": __version__}

    @app.post("/fence")
    async def fence(req: FenceRequest, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Parse the directives of a fence-open line."""
        return {"directives": directives_to_data(req.line)}

    @app.post("/expand")
    async def expand(req: ExpandRequest, auth: None = Depends(verify_token)) -> dict[str, Any]:
        return {"lines": expand_line_ranges(req.payload)}

    @app.post("/decorations")
    async def decorations(req: DecorationsRequest, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Live-preview decorations for a buffer and optional viewport."""
        length = len(req.text)
        viewport = (
            req.from_ if req.from_ is not None else 0,
            req.to if req.to is not None else length,
        )
        decos = runtime.decorations_for(req.text, viewport)
        return {"viewport": list(viewport), "decorations": [d.to_data() for d in decos]}

    @app.get("/render")
    async def render(
        path: str = Query(..., description="Vault-relative note path"),
        export: bool = Query(False, description="Recover text from storage instead of the buffer"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Reading-view HTML for one note."""
        try:
            result = await runtime.render_file(path, export=export)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if result is None:
            raise HTTPException(status_code=404, detail=f"Note {path} not found")
        return {
            "path": path,
            "html": result.html,
            "blocks": [
                {
                    "language": occ.language_name,
                    "title": occ.title,
                    "line_count": occ.line_count,
                    "highlight_lines": list(occ.directives.highlight_lines),
                    "collapsed": occ.directives.collapsed,
                }
                for occ in result.occurrences
            ],
        }

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
