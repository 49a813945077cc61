from datetime import datetime
from typing import Optional

from pydantic import AnyHttpUrl, Field, TypeAdapter, ValidationError, field_validator

from stockflow.schemas.base import BaseSchema

http_url = TypeAdapter(AnyHttpUrl)


class WebhookCreate(BaseSchema):
    endpoint: str
    sku: Optional[str] = None
    min_stock: int

    @field_validator('endpoint')
    @classmethod
    def validate_endpoint(cls, v):
        """Accept only http(s) URLs but keep the string exactly as registered."""
        try:
            http_url.validate_python(v)
        except ValidationError:
            raise ValueError(f'Endpoint must be an http or https URL, got: {v}')
        return v

class WebhookRead(BaseSchema):
    id: str
    endpoint: str
    sku: Optional[str] = None
    min_stock: int
    created_at: datetime


class StockNotification(BaseSchema):
    """Payload of one queued delivery job."""
    endpoint: str
    sku: str
    new_stock: int = Field(ge=0)
