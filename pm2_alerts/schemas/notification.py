"""Slack Notification Schemas"""
from typing import Optional, List
from pydantic import BaseModel, Field


class SlackAttachment(BaseModel):
    """Legacy Slack message attachment"""
    fallback: str
    color: str
    title: str
    text: str
    ts: int


class SlackPayload(BaseModel):
    """Incoming-webhook request body"""
    username: str
    attachments: List[SlackAttachment] = Field(default_factory=list)


class SendSlackOutput(BaseModel):
    """Output from a webhook send"""
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
