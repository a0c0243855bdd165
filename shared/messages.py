"""
Notification channel message variants.

Every frame pushed over the notification socket is one of the models in
``ServerMessage``; the ``type`` field selects the variant. Clients must
register a handler for every variant (see ``service_client.app.notifications``).
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Notification(BaseModel):
    """A user-facing notification."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    title: str
    message: str
    notification_type: str = "info"
    priority: str = "medium"
    is_read: bool = False
    action_url: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class NotificationMessage(BaseModel):
    type: Literal["notification"] = "notification"
    notification: Notification


class DashboardUpdateMessage(BaseModel):
    type: Literal["dashboard_update"] = "dashboard_update"
    dashboard: str
    data: Dict[str, Any] = Field(default_factory=dict)


class InventoryAlertMessage(BaseModel):
    """Stock for a product fell below its minimum threshold."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["inventory_alert"] = "inventory_alert"
    product_id: str = Field(alias="productId")
    product_name: str = Field(alias="productName")
    current_stock: int = Field(alias="currentStock")
    minimum_threshold: int = Field(alias="minimumThreshold")


ServerMessage = Annotated[
    Union[NotificationMessage, DashboardUpdateMessage, InventoryAlertMessage],
    Field(discriminator="type"),
]

_server_message_adapter = TypeAdapter(ServerMessage)


class AuthFrame(BaseModel):
    """First frame a client sends after connecting."""

    type: Literal["auth"] = "auth"
    token: str


def parse_server_message(raw: Union[str, bytes, Dict[str, Any]]):
    """Decode one server frame into its message variant.

    Raises ``pydantic.ValidationError`` for unknown ``type`` values or
    malformed payloads.
    """
    if isinstance(raw, (str, bytes)):
        return _server_message_adapter.validate_json(raw)
    return _server_message_adapter.validate_python(raw)


def dump_server_message(message: BaseModel) -> str:
    """Encode a message variant as a JSON frame (wire field names)."""
    return message.model_dump_json(by_alias=True)
