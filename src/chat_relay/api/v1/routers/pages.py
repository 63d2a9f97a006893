"""Static chat pages, served only when STATIC_DIR is configured."""
from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse, RedirectResponse


def build_router(static_dir: str | None) -> APIRouter:
    router = APIRouter(tags=["pages"], include_in_schema=False)

    @router.get("/")
    async def index() -> RedirectResponse:
        return RedirectResponse(url="/login")

    if static_dir:
        root = Path(static_dir)

        @router.get("/login")
        async def login_page() -> FileResponse:
            return FileResponse(root / "login.html")

        @router.get("/chat")
        async def chat_page() -> FileResponse:
            return FileResponse(root / "chat.html")

    return router
