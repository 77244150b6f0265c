import logging
from abc import ABC, abstractmethod

import requests

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT = 10


class Messenger(ABC):
    @abstractmethod
    def send_message(
        self,
        *,
        title: str,
        message: str,
        alert: bool = False,
    ):
        pass


class NullMessenger(Messenger):
    def send_message(self, *, title: str, message: str, alert: bool = False):
        logger.info("NullMessenger: %s %s %s", title, message, "ALERT!" if alert else "")


class CombinedMessenger(Messenger):
    def __init__(self, messengers: list[Messenger]):
        self.messengers = messengers

    def send_message(self, *, title: str, message: str, alert: bool = False):
        for messenger in self.messengers:
            messenger.send_message(title=title, message=message, alert=alert)


class WebhookMessenger(Messenger):
    """
    Posts messages to a chat webhook. Delivery failures are logged and never raised,
    a notification must not break the deposit flow.
    """

    name = "webhook"

    def __init__(self, webhook_url: str, username: str = "Deposit Bridge BOT"):
        self.webhook_url = webhook_url
        self.username = username

    def send_message(self, *, title: str, message: str, alert: bool = False):
        try:
            response = requests.post(
                self.webhook_url,
                json=self.build_payload(title=title, message=message, alert=alert),
                timeout=WEBHOOK_TIMEOUT,
            )
        except requests.RequestException:
            logger.exception("%s: error sending message", self.__class__.__name__)
            return
        if not response.ok:
            logger.warning(
                "Request to %s returned an error %s, the response is:\n%s",
                self.name,
                response.status_code,
                response.text,
            )

    @abstractmethod
    def build_payload(self, *, title: str, message: str, alert: bool) -> dict:
        pass


class DiscordMessenger(WebhookMessenger):
    name = "Discord"

    def build_payload(self, *, title: str, message: str, alert: bool) -> dict:
        content = ""
        if alert:
            content += "# 🚨 Alert! 🚨\n"
        if title:
            content += f"## {title}\n"
        content += message
        return {
            "username": self.username,
            "content": content,
        }


class SlackMessenger(WebhookMessenger):
    name = "Slack"

    def __init__(self, webhook_url: str, username: str = "Deposit Bridge BOT", channel: str = ""):
        super().__init__(webhook_url, username=username)
        self.channel = channel

    def build_payload(self, *, title: str, message: str, alert: bool) -> dict:
        if alert:
            title = f"🚨 Alert! 🚨 {title}"
        blocks = []
        if title:
            blocks.append({"type": "header", "text": {"type": "plain_text", "text": title}})
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": message}})
        return {
            "username": self.username,
            "icon_emoji": ":fire:" if alert else ":robot_face:",
            "channel": self.channel,
            "blocks": blocks,
        }
