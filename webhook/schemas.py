"""
Typeform webhook payload schema.

Only the fields the bridge reads are declared; everything else Typeform
sends is kept but ignored.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, StrictStr

FORM_RESPONSE_EVENT = "form_response"


class TypeformEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    event_id: Optional[str] = None
    event_type: StrictStr
    event_time: Optional[str] = None
    form_response: Optional[Dict[str, Any]] = None

    @property
    def is_form_response(self) -> bool:
        return self.event_type == FORM_RESPONSE_EVENT
