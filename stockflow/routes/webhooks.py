from fastapi import APIRouter, Depends, status

from stockflow.dependencies import get_webhook_service
from stockflow.schemas.webhook import WebhookCreate, WebhookRead
from stockflow.services.webhook_service import WebhookService

router = APIRouter(prefix="/v1/webhooks", tags=["webhooks"])


@router.post("", response_model=WebhookRead, status_code=status.HTTP_201_CREATED)
async def create_webhook(
    body: WebhookCreate,
    webhook_service: WebhookService = Depends(get_webhook_service)
):
    """
    Subscribe an endpoint to stock alerts. Omit ``sku`` to receive alerts for
    every SKU.
    """
    return await webhook_service.create(body)
