"""Chat and ledger endpoints with simple token auth."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from nutrition_chat.api.schemas import (
    ChatRequest,
    ChatTurnOut,
    DailyLogOut,
    MessageOut,
    StreakOut,
    WaterOut,
    WaterRequest,
)
from nutrition_chat.errors import MealNotFoundError

if TYPE_CHECKING:
    from nutrition_chat.containers import AppContainer

router = APIRouter(prefix="/v1", tags=["chat"])


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/messages", dependencies=[Depends(require_token)])
async def list_messages(request: Request) -> list[MessageOut]:
    """Return today's conversation."""
    container: AppContainer = request.app.state.container
    return [
        MessageOut.from_domain(message)
        for message in container.chat_service.refresh()
    ]


@router.post("/chat", dependencies=[Depends(require_token)])
async def send_message(payload: ChatRequest, request: Request) -> ChatTurnOut:
    """Send a user message and return the assistant reply."""
    container: AppContainer = request.app.state.container
    turn = await container.chat_service.send_message(payload.text)
    return ChatTurnOut.from_domain(turn)


@router.post("/water", dependencies=[Depends(require_token)])
async def log_water(payload: WaterRequest, request: Request) -> WaterOut:
    """Log water for today."""
    container: AppContainer = request.app.state.container
    log, update = await container.chat_service.log_water(payload.amount_ml)
    return WaterOut(
        daily_log=DailyLogOut.from_domain(log),
        streak=StreakOut.from_domain(update.streak, update),
    )


@router.get("/days/{day}", dependencies=[Depends(require_token)])
async def get_day(day: date, request: Request) -> DailyLogOut:
    """Return the ledger for a calendar day."""
    container: AppContainer = request.app.state.container
    log = container.ledger_service.get_daily_log(day)
    if log is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return DailyLogOut.from_domain(log)


@router.delete("/meals/{entry_id}", dependencies=[Depends(require_token)])
async def delete_meal(entry_id: UUID, request: Request) -> DailyLogOut:
    """Delete a meal entry and return its updated day."""
    container: AppContainer = request.app.state.container
    try:
        log = await container.chat_service.delete_meal(entry_id)
    except MealNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    return DailyLogOut.from_domain(log)


@router.get("/streak", dependencies=[Depends(require_token)])
async def get_streak(request: Request) -> StreakOut:
    """Return the water streak and unlocked badges."""
    container: AppContainer = request.app.state.container
    streak_service = container.streak_service
    return StreakOut.from_domain(
        streak_service.get_streak(), badges=streak_service.unlocked_badges()
    )
