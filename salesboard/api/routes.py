"""
FastAPI routes for the live sales leaderboard.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse, StreamingResponse

from salesboard.clients import AuthConfigError, PurchasesApiError, UpstreamAuthError
from salesboard.dependencies import (
    get_app_settings,
    get_broadcaster,
    get_leaderboard_store,
    get_purchases_client,
    get_webhook_processor,
    get_webhook_verifier,
)
from salesboard.services import Rejected, VerificationUnavailableError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/events")
async def live_events(
    broadcaster: Annotated[Any, Depends(get_broadcaster)],
) -> StreamingResponse:
    """Open a server-sent event stream of leaderboard updates."""
    return StreamingResponse(
        broadcaster.stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/leaderboard", status_code=HTTPStatus.OK)
async def leaderboard_snapshot(
    store: Annotated[Any, Depends(get_leaderboard_store)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> dict:
    """Current ranking, for dashboards that load after the last update."""
    return {"top": store.top(settings.leaderboard_size)}


@router.post("/webhook", status_code=HTTPStatus.OK)
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    verifier: Annotated[Any, Depends(get_webhook_verifier)],
    processor: Annotated[Any, Depends(get_webhook_processor)],
) -> PlainTextResponse:
    """
    Verify a Zettle or PayPal delivery and acknowledge it.

    The body is read as raw bytes whatever the content type, since both
    signature schemes cover the exact bytes sent. Line items are applied after
    the acknowledgement has gone out.
    """
    body = await request.body()

    try:
        outcome = await verifier.verify(body, request.headers)
    except VerificationUnavailableError as exc:
        logger.error("Webhook verification unavailable: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Webhook verification unavailable.",
        ) from exc

    if isinstance(outcome, Rejected):
        logger.warning("Rejected webhook: %s", outcome.reason)
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Unauthorized")

    background_tasks.add_task(processor.process, body, outcome.provider)
    return PlainTextResponse("OK")


@router.get("/purchases-count", response_class=PlainTextResponse)
async def purchases_count(
    purchases_client: Annotated[Any, Depends(get_purchases_client)],
) -> PlainTextResponse:
    """Diagnostic: count purchases returned by the Zettle purchases API."""
    try:
        count = await purchases_client.count_purchases()
    except AuthConfigError as exc:
        return PlainTextResponse(
            f"Configuration error: {exc}",
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        )
    except (UpstreamAuthError, PurchasesApiError) as exc:
        logger.warning("Zettle purchases lookup failed: %s", exc)
        return PlainTextResponse(str(exc), status_code=HTTPStatus.BAD_GATEWAY)
    except httpx.HTTPError as exc:
        logger.warning("Zettle purchases lookup failed: %s", exc)
        return PlainTextResponse(
            f"Upstream request failed: {exc}", status_code=HTTPStatus.BAD_GATEWAY
        )

    return PlainTextResponse(f"Purchases fetched: {count}")


__all__ = ["router"]
