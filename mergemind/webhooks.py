from fastapi import APIRouter, HTTPException, Header, Request
from typing import Optional
import json
import hmac
import hashlib
import logging

from .config import Config
from .errors import (
    AggregateDeliveryError,
    DeliveryProcessingError,
    MalformedEventError,
    SignatureVerificationError,
)
from .handler import PullRequestOpenedHandler

logger = logging.getLogger(__name__)

router = APIRouter()


async def handle_github_webhook(
    request: Request,
    x_hub_signature_256: Optional[str] = Header(None),
    x_github_event: str = Header(...),
    x_github_delivery: Optional[str] = Header(None),
):
    payload_body = await request.body()

    if Config.GITHUB_WEBHOOK_SECRET:
        if not verify_signature(payload_body, x_hub_signature_256, Config.GITHUB_WEBHOOK_SECRET):
            report_delivery_error(
                SignatureVerificationError(
                    f"Signature does not match payload for delivery {x_github_delivery}",
                    event_id=x_github_delivery,
                )
            )
            raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        webhook_data = json.loads(payload_body)
    except ValueError:
        report_delivery_error(
            DeliveryProcessingError(f"Invalid JSON payload for delivery {x_github_delivery}", event_id=x_github_delivery)
        )
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    if x_github_event != "pull_request":
        return {"message": f"Event {x_github_event} ignored"}

    if not isinstance(webhook_data, dict) or webhook_data.get("action") != "opened":
        action = webhook_data.get("action") if isinstance(webhook_data, dict) else None
        return {"message": f"PR action '{action}' ignored"}

    handler: PullRequestOpenedHandler = request.app.state.pr_opened_handler

    try:
        posted = await handler.handle(webhook_data)
    except MalformedEventError as e:
        report_delivery_error(AggregateDeliveryError(x_github_delivery, "pull_request.opened", [e]))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        report_delivery_error(AggregateDeliveryError(x_github_delivery, "pull_request.opened", [e]))
        raise HTTPException(status_code=500, detail="Error processing pull_request.opened delivery")

    return {
        "status": "processed",
        "pr_number": webhook_data.get("number"),
        "comments_posted": len(posted),
    }


router.add_api_route(Config.WEBHOOK_PATH, handle_github_webhook, methods=["POST"])


def report_delivery_error(error: DeliveryProcessingError) -> None:
    """Log a failure raised while processing a delivery. Purely observational."""
    if isinstance(error, AggregateDeliveryError):
        logger.error(f"Error processing request: {error.event_id}")
        for cause in error.errors:
            logger.debug(f"{error.event_name} handler error: {cause!r}")
    else:
        logger.error(error)


# helper functions
def verify_signature(payload_body: bytes, signature: str | None, secret: str) -> bool:
    """Verify GitHub webhook signature"""
    if not signature or not secret:
        return False

    hash_object = hmac.new(
        secret.encode('utf-8'),
        msg=payload_body,
        digestmod=hashlib.sha256
    )
    expected_signature = "sha256=" + hash_object.hexdigest()
    return hmac.compare_digest(expected_signature, signature)
