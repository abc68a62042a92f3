"""Voice command endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...schemas.commands import CommandRequest, CommandResponse
from ...services.voice.commands import parse_command

router = APIRouter(prefix="/commands", tags=["commands"])


@router.post("/parse", response_model=CommandResponse, status_code=status.HTTP_200_OK)
def parse(payload: CommandRequest) -> CommandResponse:
    command = parse_command(payload.transcript, is_admin=payload.is_admin)
    return CommandResponse(
        kind=command.kind.value,
        feedback=command.feedback,
        preference=command.preference.value if command.preference else None,
        arguments=command.arguments,
    )
