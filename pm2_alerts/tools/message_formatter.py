"""Message Formatter - Slack attachment payloads for lifecycle notifications"""
import socket
from datetime import datetime, timezone
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

import structlog

from ..schemas.events import ProcessDescription, SemanticNotification
from ..schemas.notification import SlackAttachment, SlackPayload

logger = structlog.get_logger(__name__)

COLOR_MAP = {
    "restarted": "#4caf50",
    "started": "#2196f3",
    "stopped": "#f44336",
    "errored": "#e53935",
    "disconnected": "#ff9800",
    "exit": "#f44336",
    "log": "#607d8b",
    "error": "#d32f2f",
    "kill": "#9e9e9e",
    "exception": "#ab47bc",
    "reload": "#03a9f4",
    "delete": "#757575",
    "restart overlimit": "#e91e63",
}

EMOJI_MAP = {
    "restarted": "♻️",
    "started": "🚀",
    "stopped": "🛑",
    "errored": "❌",
    "disconnected": "⚠️",
    "exit": "🛑",
    "log": "📝",
    "error": "🐞",
    "kill": "☠️",
    "exception": "🔥",
    "reload": "🔁",
    "delete": "🗑️",
    "restart overlimit": "🚫",
}

DEFAULT_COLOR = "#cccccc"
DEFAULT_EMOJI = "ℹ️"
DIVIDER = "━━━━━━━━━━━━━━━━━━━━━━━━━━"


class MessageFormatter:
    """
    Build Slack webhook payloads from semantic notifications.
    """

    def __init__(
        self,
        hostname: Optional[str] = None,
        mentions: Sequence[str] = (),
        tz: str = "UTC",
    ):
        """
        Args:
            hostname: Host shown in the message (defaults to this machine)
            mentions: Slack user ids to ping
            tz: IANA timezone for the displayed time
        """
        self.hostname = hostname or socket.gethostname()
        self.mentions = " ".join(f"<@{user_id}>" for user_id in mentions)
        self.tz = ZoneInfo(tz)

    def format_message(
        self,
        notification: SemanticNotification,
        description: ProcessDescription,
        now: Optional[datetime] = None,
    ) -> SlackPayload:
        """
        Generate the webhook payload.

        Args:
            notification: Classified notification
            description: Runtime metrics for the app
            now: Timestamp override (tests)
        """
        now = now or datetime.now(timezone.utc)
        kind = notification.kind
        app = notification.app_name
        pids = notification.instance_ids

        color = COLOR_MAP.get(kind, DEFAULT_COLOR)
        emoji = EMOJI_MAP.get(kind, DEFAULT_EMOJI)

        lines = [
            "```",
            f"🕒 Time       : {self._format_time(now)}",
            f"🖥 Host       : {self.hostname}",
            f"📌 Event      : {kind}",
            f"📊 Mode       : {'cluster' if len(pids) > 1 else 'fork'}",
            f"📈 Uptime     : {self._format_uptime(description, now)}",
            f"💾 Memory     : {self._format_memory(description.monit.memory)}",
            f"⚙️ CPU        : {self._format_cpu(description.monit.cpu)}",
        ]
        if pids:
            noun = "instance" if len(pids) == 1 else "instances"
            lines.append(
                f"🧩 PIDs       : {len(pids)} {noun} ({', '.join(str(p) for p in pids)})"
            )
        if self.mentions:
            lines.append(f"👥 Mentions   : {self.mentions}")
        lines.append("```")

        text = (
            f"{DIVIDER}\n"
            f" *{app.upper()}* → *`{kind.upper()}`* \n\n"
            + "\n".join(lines)
        )

        payload = SlackPayload(
            username=f"PM2 Notify ({self.hostname})",
            attachments=[
                SlackAttachment(
                    fallback=f"{app} {kind}",
                    color=color,
                    title=f"{emoji} SERVER STATUS UPDATED {emoji}",
                    text=text,
                    ts=int(now.timestamp()),
                )
            ],
        )

        logger.debug("Message formatted", app=app, kind=kind, text_length=len(text))
        return payload

    def _format_time(self, now: datetime) -> str:
        return now.astimezone(self.tz).strftime("%d.%m.%Y %H:%M:%S")

    def _format_uptime(self, description: ProcessDescription, now: datetime) -> str:
        uptime = description.uptime_seconds(int(now.timestamp() * 1000))
        return f"{uptime}s" if uptime is not None else "N/A"

    def _format_memory(self, memory: Optional[int]) -> str:
        if not memory:
            return "N/A"
        return f"{memory / 1024 / 1024:.2f} MB"

    def _format_cpu(self, cpu: Optional[float]) -> str:
        if cpu is None:
            return "N/A"
        return f"{cpu:g}%"
