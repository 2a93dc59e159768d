"""FastAPI application exposing the zombie report over HTTP."""

from __future__ import annotations

import os
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, status

from .config import Settings, load_settings
from .errors import ConfigError, ZombieReportError
from .service import MODES, ZombieReportService, create_service


def create_app(
    settings: Optional[Settings] = None, service: Optional[ZombieReportService] = None
) -> FastAPI:
    settings = settings or load_settings(os.getenv("ZOMBIE_REPORT_CONFIG", "config.yaml"))
    service = service or create_service(settings)

    def require_api_key(x_api_key: Optional[str] = Header(None)) -> None:
        if not settings.api_key:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="API key is not configured"
            )
        if not x_api_key or x_api_key != settings.api_key:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

    async def render(mode: str, days: int, by_day: bool) -> list[str]:
        if mode not in MODES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="mode must be one of: daily, weekly, deep-scan",
            )
        try:
            return await service.render(mode, days, by_day)
        except ConfigError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        except ZombieReportError as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    app = FastAPI(title="Zombie Report API", version="1.0.0")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - io bound
        await service.close()

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/report", dependencies=[Depends(require_api_key)])
    async def get_report(
        mode: str = "daily",
        days: int = Query(0, ge=0),
        by_day: bool = False,
    ) -> dict[str, object]:
        messages = await render(mode, days, by_day)
        return {"mode": mode, "messages": messages}

    @app.post("/api/report/send", dependencies=[Depends(require_api_key)])
    async def send_report(
        mode: str = "daily",
        days: int = Query(0, ge=0),
        by_day: bool = False,
    ) -> dict[str, object]:
        messages = await render(mode, days, by_day)
        try:
            await service.send_report(messages)
        except ZombieReportError as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
        return {"mode": mode, "sent": len(messages)}

    return app


__all__ = ["create_app"]
