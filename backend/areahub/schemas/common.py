"""Shared response schemas."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Simple message response for operations like delete."""

    message: str
