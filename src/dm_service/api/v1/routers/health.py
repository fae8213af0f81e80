from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from dm_service.infrastructure.db.session import AsyncSessionLocal

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    """Checks both stores; also reports the access strategy and change-feed state.

    A disconnected change feed does not fail readiness: REST keeps working and
    realtime clients recover by re-fetching.
    """
    errors: list[str] = []

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        errors.append(f"postgres: {exc}")

    try:
        await request.app.state.redis.ping()
    except Exception as exc:  # noqa: BLE001
        errors.append(f"redis: {exc}")

    strategy = getattr(request.app.state, "strategy", None)
    subscriber = getattr(request.app.state, "pubsub_subscriber", None)
    body = {
        "strategy": strategy.name if strategy is not None else None,
        "change_feed": "connected" if subscriber is not None and subscriber.connected else "down",
    }
    if errors:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "errors": errors, **body},
        )
    return JSONResponse(content={"status": "ready", **body})
