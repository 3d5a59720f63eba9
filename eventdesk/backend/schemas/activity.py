"""
Activity Log Schemas.
"""

from datetime import datetime
from typing import Any

from eventdesk.backend.schemas.base import ORMModel


class ActivityLogResponse(ORMModel):
    id: str
    event_id: str | None
    action: str
    entity_type: str
    entity_id: str | None
    entity_name: str | None
    actor: str | None
    description: str | None
    details: dict[str, Any]
    created_at: datetime
