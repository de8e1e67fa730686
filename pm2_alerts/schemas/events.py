"""
Event Schemas

Raw supervisor events, derived semantic notifications and the
runtime process description used to enrich them.
"""

from typing import Any, Optional, List
from pydantic import BaseModel, Field

UNKNOWN_APP = "unknown-app"


class RawEvent(BaseModel):
    """
    Raw lifecycle event as emitted by the process supervisor.

    Ephemeral - never retained after ingest.
    """
    app_name: str = UNKNOWN_APP
    instance_id: Optional[int] = None
    event: str
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_bus_payload(cls, data: dict[str, Any]) -> "RawEvent":
        """
        Adapt a PM2 ``process:event`` bus message.

        Expected shape: {"event": "exit", "process": {"name": "api", "pm_id": 0}}
        """
        process = data.get("process") or {}
        return cls(
            app_name=process.get("name") or UNKNOWN_APP,
            instance_id=process.get("pm_id"),
            event=str(data.get("event", "")),
            payload=data,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "app_name": "api",
                "instance_id": 0,
                "event": "exit",
            }
        }


class SemanticNotification(BaseModel):
    """
    Application-level notification produced by the observer.

    Handed to the dispatcher and then discarded.
    """
    app_name: str
    kind: str = Field(..., min_length=1)
    message: str
    instance_ids: List[int] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "app_name": "api",
                "kind": "restarted",
                "message": "api has been restarted (2 instances)",
                "instance_ids": [0, 1],
            }
        }


class ProcessMonit(BaseModel):
    """Live resource usage for a process"""
    memory: Optional[int] = None  # bytes
    cpu: Optional[float] = None   # percent


class ProcessDescription(BaseModel):
    """
    Supervisor's runtime view of one application instance.

    Mirrors the subset of ``pm2 describe`` output the formatter needs.
    """
    name: Optional[str] = None
    pm_id: Optional[int] = None
    monit: ProcessMonit = Field(default_factory=ProcessMonit)
    pm2_env: dict[str, Any] = Field(default_factory=dict)

    def uptime_seconds(self, now_ms: int) -> Optional[int]:
        """Seconds since the process came up, or None if unknown"""
        started = self.pm2_env.get("pm_uptime")
        if not started:
            return None
        return int((now_ms - started) // 1000)
