import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ActivityResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    action: str
    entity_type: str | None
    entity_id: str | None
    details: dict[str, Any] | None
    created_at: datetime
