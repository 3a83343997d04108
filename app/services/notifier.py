from datetime import datetime
from typing import Dict, List, Optional
import os

import requests

from app.utils.log import app_logger
from app.config.settings import settings
from app.clients.base_http_client import BaseHTTPClient, sanitize_error


STATUS_EMOJI = {
    "healthy": ":large_green_circle:",
    "degraded": ":large_yellow_circle:",
    "down": ":red_circle:",
    "unknown": ":white_circle:",
}

DISCORD_COLORS = {
    "healthy": 0x2ECC71,
    "degraded": 0xF1C40F,
    "down": 0xE74C3C,
    "unknown": 0x95A5A6,
}


class Notifier:
    """Notifier that emits integration status changes to Slack and Discord via incoming webhooks.

    Behavior:
    - Webhook URLs come from settings (`SLACK_WEBHOOK_URL`, `DISCORD_WEBHOOK_URL`).
    - If none are configured, falls back to logging only.
    - Delivery is best effort: failures are logged and never raised to the caller.
    """

    SLACK_MENTION_ENV = "SLACK_MENTION"
    DISCORD_MENTION_ENV = "DISCORD_MENTION"

    MAX_ITEMS = 25
    MAX_LINE_LEN = 600
    MAX_DESC_LEN = 4096

    def __init__(
        self,
        slack_url: Optional[str] = None,
        discord_url: Optional[str] = None,
        http_client: Optional[BaseHTTPClient] = None,
    ):
        self.slack_url = slack_url if slack_url is not None else settings.SLACK_WEBHOOK_URL
        self.discord_url = discord_url if discord_url is not None else settings.DISCORD_WEBHOOK_URL
        # mention configuration: values can be 'here'/'channel' for Slack and 'everyone'/'here' for Discord
        self.slack_mention = (os.environ.get(self.SLACK_MENTION_ENV) or "").strip().lower()
        self.discord_mention = (os.environ.get(self.DISCORD_MENTION_ENV) or "").strip().lower()
        self.http_client = http_client or BaseHTTPClient(timeout=5, max_retries=1)
        if self.slack_url:
            app_logger.info("notifier.init", platform="slack", webhook=self._redact(self.slack_url))
        if self.discord_url:
            app_logger.info("notifier.init", platform="discord", webhook=self._redact(self.discord_url))

    def _redact(self, v: str) -> str:
        # only show the last path segment of the webhook
        parsed = v.rstrip('/').split('/')
        return f".../{parsed[-1][:4]}***" if parsed[-1] else "(redacted)"

    def _format_line(self, item: Dict) -> str:
        ts = item["checked_at"].strftime("%Y-%m-%d %H:%M") if isinstance(item.get("checked_at"), datetime) else ""
        line = f"*{item['service_name']}* ({item['service_type']}) {item['previous_status']} -> {item['current_status']}"
        if item.get("error_message"):
            line += f": {item['error_message']}"
        if ts:
            line += f" [{ts}]"
        return line if len(line) <= self.MAX_LINE_LEN else line[: self.MAX_LINE_LEN - 3] + "..."

    def _post(self, platform: str, url: str, body: Dict, count: int) -> None:
        try:
            resp = self.http_client.post(url, json=body)
            if resp.status_code >= 400:
                app_logger.error(f"notifier.{platform}_error", status=resp.status_code, body=resp.text[:500])
            else:
                app_logger.debug(f"notifier.{platform}_sent", count=count)
        except requests.RequestException as e:
            app_logger.error(f"notifier.{platform}_exception", error=sanitize_error(e))

    def _send_slack(self, items: List[Dict]) -> None:
        if not self.slack_url:
            return
        mention_text = ""
        if self.slack_mention == "here":
            mention_text = "<!here> "
        elif self.slack_mention == "channel":
            mention_text = "<!channel> "

        display = items[: self.MAX_ITEMS]
        blocks = [{"type": "section", "text": {"type": "mrkdwn", "text": f"*{len(items)} integration status change(s)*"}}]
        for it in display:
            emoji = STATUS_EMOJI.get(it["current_status"], "")
            blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": f"{emoji} {self._format_line(it)}".strip()}})
        remaining = len(items) - len(display)
        if remaining > 0:
            blocks.append({"type": "context", "elements": [{"type": "mrkdwn", "text": f"And {remaining} more entries..."}]})

        body = {"text": f"{mention_text}{len(items)} integration status change(s)", "blocks": blocks}
        self._post("slack", self.slack_url, body, len(items))

    def _send_discord(self, items: List[Dict]) -> None:
        if not self.discord_url:
            return
        content = ""
        if self.discord_mention == "everyone":
            content = "@everyone"
        elif self.discord_mention == "here":
            content = "@here"

        lines = [self._format_line(it).replace("*", "**") for it in items[: self.MAX_ITEMS]]
        description = "\n".join(lines)
        if len(description) > self.MAX_DESC_LEN - 50:
            truncated = description[: self.MAX_DESC_LEN - 50]
            last_newline = truncated.rfind('\n')
            description = (truncated[:last_newline] if last_newline > 0 else truncated) + "\n\n... (truncated)"
        elif len(items) > self.MAX_ITEMS:
            description += f"\n\n... and {len(items) - self.MAX_ITEMS} more"

        # embed color follows the worst status in the batch
        worst = "healthy"
        for level in ("unknown", "degraded", "down"):
            if any(it["current_status"] == level for it in items):
                worst = level
        embed = {
            "title": f"{len(items)} integration status change(s)",
            "description": description,
            "color": DISCORD_COLORS[worst],
            "footer": {"text": "Integration monitor"},
        }
        body = {"embeds": [embed]}
        if content:
            body["content"] = content
        self._post("discord", self.discord_url, body, len(items))

    def notify_status_changes(self, items: List[Dict]) -> None:
        """Notify about monitors whose status changed during a sweep.

        `items` is a list of dicts with keys: `service_name`, `service_type`,
        `previous_status`, `current_status`, `error_message` and `checked_at` (datetime).
        """
        if not items:
            return

        for it in items:
            app_logger.info(
                "notifier.status_change",
                monitor_id=it.get("monitor_id"),
                service_name=it.get("service_name"),
                previous_status=it.get("previous_status"),
                current_status=it.get("current_status"),
            )

        self._send_slack(items)
        self._send_discord(items)


notifier = Notifier()
