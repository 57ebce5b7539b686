"""
Shared route helpers
"""
from fastapi import Request


def wake_outbox(request: Request) -> None:
    """Ask the outbox dispatcher to push freshly committed notifications"""
    outbox = getattr(request.app.state, "outbox", None)
    if outbox is not None:
        outbox.wake()
