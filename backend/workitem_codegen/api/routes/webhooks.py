"""Work item service-hook receiver.

Deliveries for created/updated work items run through the pipeline directly
from the payload's resource; other event types are acknowledged and ignored.
When WEBHOOK_SECRET is set, the raw body must carry a matching
``X-Webhook-Signature: sha256=<hex>`` HMAC.
"""

import hashlib
import hmac

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from workitem_codegen.core.config import get_settings
from workitem_codegen.core.logging import work_item_context
from workitem_codegen.domain.enrichment import FIELD_TYPE
from workitem_codegen.schemas.webhooks import WebhookResponse, WorkItemWebhookPayload
from workitem_codegen.schemas.work_items import RawWorkItem
from workitem_codegen.services import WorkItemPipeline

logger = structlog.get_logger(__name__)

router = APIRouter()

SIGNATURE_HEADER = "X-Webhook-Signature"


def verify_signature(body: bytes, signature: str | None, secret: str) -> bool:
    if not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.removeprefix("sha256="))


def get_pipeline(request: Request) -> WorkItemPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Work item pipeline is not configured")
    return pipeline


@router.post("/work-items", response_model=WebhookResponse)
async def work_item_webhook(request: Request):
    """Process a work item created/updated delivery."""
    settings = get_settings()
    body = await request.body()

    if settings.webhook_secret and not verify_signature(
        body, request.headers.get(SIGNATURE_HEADER), settings.webhook_secret
    ):
        logger.warning("webhook_signature_invalid")
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = WorkItemWebhookPayload.model_validate_json(body)
    except ValidationError as exc:
        logger.warning("webhook_payload_invalid", errors=exc.error_count())
        raise HTTPException(status_code=400, detail="Invalid webhook payload") from exc

    event_type = payload.event_type
    resource = payload.resource
    if event_type not in settings.webhook_event_types:
        logger.info("webhook_event_ignored", event_type=event_type, work_item_id=resource.id)
        return WebhookResponse(message="Event type ignored", work_item_id=resource.id, event_type=event_type)

    pipeline = get_pipeline(request)
    logger.info("webhook_received", event_type=event_type, work_item_id=resource.id)

    fields = {FIELD_TYPE: resource.work_item_type, **resource.fields}
    with work_item_context(resource.id, trigger=event_type):
        result = await pipeline.process_item(RawWorkItem(id=resource.id, fields=fields))

    response = WebhookResponse(
        message="Work item processed successfully" if result.success else "Work item processing failed",
        work_item_id=result.work_item_id,
        event_type=event_type,
        stage=result.stage.value,
        branch_name=result.branch_name,
        files_generated=len(result.bundle.all_files()) if result.bundle else 0,
        errors=result.errors,
        warnings=result.warnings,
    )
    if not result.success:
        return JSONResponse(status_code=500, content=response.model_dump())
    return response
