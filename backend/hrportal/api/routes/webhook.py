import logging
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("hrportal.webhook")

router = APIRouter()


@router.post("")
async def receive_webhook(request: Request) -> Any:
    """Accept and log an inbound JSON payload. Nothing is forwarded."""
    try:
        payload = await request.json()
    except ValueError as e:
        logger.error(f"Webhook payload could not be parsed: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Webhook processing failed"},
        )

    logger.info(f"Webhook received data: {payload}")
    return {"message": "Webhook received successfully"}


@router.get("")
async def webhook_info() -> Any:
    return {"message": "Webhook endpoint"}
