"""
Webhook module - Typeform to gateway bridge.

Includes:
- typeform.py: POST /typeform-listener, GET /health
- formatting.py: submission -> notification text
- gateway_client.py: authenticated forward to POST /notify
"""

from webhook.formatting import format_typeform_submission, truncate_message
from webhook.gateway_client import ForwardResult, GatewayClient, GatewayForwardError
from webhook.schemas import TypeformEvent
from webhook.typeform import router as typeform_router

__all__ = [
    "typeform_router",
    "TypeformEvent",
    "format_typeform_submission",
    "truncate_message",
    "GatewayClient",
    "GatewayForwardError",
    "ForwardResult",
]
