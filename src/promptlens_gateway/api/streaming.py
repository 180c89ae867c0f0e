"""
Server-Sent-Events framing.
"""

import json

from ..models.response import CompletionEvent


def format_sse(event: CompletionEvent) -> str:
    """Render one canonical event as a ``data:`` frame."""
    return f"data: {json.dumps(event.to_wire())}\n\n"
