"""Test helpers"""

import httpx

from ..schemas.events import RawEvent, SemanticNotification


class RecordingSink:
    """Collects notifications instead of dispatching them"""

    def __init__(self):
        self.notifications: list[SemanticNotification] = []

    def notify(self, notification: SemanticNotification) -> None:
        self.notifications.append(notification)

    @property
    def kinds(self) -> list[str]:
        return [n.kind for n in self.notifications]


def make_event(event: str, app: str = "api", instance_id=0) -> RawEvent:
    return RawEvent(app_name=app, instance_id=instance_id, event=event)


PROCESS_DESCRIPTION = {
    "name": "api",
    "pm_id": 0,
    "monit": {"memory": 52428800, "cpu": 1.5},
    "pm2_env": {"pm_uptime": 1_700_000_000_000},
}


class DroppingStream(httpx.AsyncByteStream):
    """Delivers one NDJSON line, then the connection resets"""

    def __init__(self, line: str):
        self.line = line

    async def __aiter__(self):
        yield (self.line + "\n").encode()
        raise httpx.ReadError("connection reset")
