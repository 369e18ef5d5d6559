from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from pydantic import ValidationError
from typing import Optional
from pixico.core.config import Settings, settings
from pixico.core.logging_config import get_client_ip
from pixico.schemas.support import SupportError, SupportRequest, SupportResponse
from pixico.services.support_relay import (
    SupportConfigurationError,
    SupportRelay,
    SupportUpstreamError,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_support_settings() -> Settings:
    return settings


def get_completions_client() -> Optional[AsyncOpenAI]:
    """None means the relay builds its own client from settings."""
    return None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=SupportError(error=message).model_dump()
    )


@router.post("/support", response_model=SupportResponse)
async def support_chat(
    request: Request,
    config: Settings = Depends(get_support_settings),
    client: Optional[AsyncOpenAI] = Depends(get_completions_client),
):
    """
    Answer one support question.

    The message is validated before anything else, so a bad request never
    reaches the completions API.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    try:
        support_request = SupportRequest.model_validate(body if isinstance(body, dict) else {})
    except ValidationError:
        return _error(400, "Message is required")

    try:
        relay = SupportRelay(config, client=client)
    except SupportConfigurationError:
        logger.error("Support chat requested but OPENROUTER_API_KEY is not set")
        return _error(500, "API key not configured")

    try:
        reply = await relay.reply(support_request.message)
    except SupportUpstreamError:
        logger.error(f"Support reply failed for client {get_client_ip(request)}")
        return _error(500, "Failed to generate response")

    return SupportResponse(response=reply)
