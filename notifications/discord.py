# notifications/discord.py
import requests
import logging

log = logging.getLogger(__name__)

WEBHOOK_PREFIX = "https://discord.com/api/webhooks/"


class DiscordNotifier:
    def __init__(self, webhook_url: str):
        if not webhook_url or not webhook_url.startswith(WEBHOOK_PREFIX):
            log.warning("Invalid or missing Discord webhook URL. Trade notifications are disabled.")
            self.webhook_url = None
        else:
            self.webhook_url = webhook_url

    def send(self, content: str):
        """
        Send a raw message payload to the Discord webhook.
        """
        if not self.webhook_url:
            return
        try:
            response = requests.post(self.webhook_url, json={"content": content}, timeout=5)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            log.error(f"Failed to send Discord notification: {e}")

    def notify_trade_executed(self, action: str, market_id: int, outcome):
        content = (f"✅ **Myriad {action} executed**\n"
                   f"Market ID: `{market_id}`\n"
                   f"Tx: `{outcome.tx_hash}`\n"
                   f"Block: `{outcome.block_number}` | Gas used: `{outcome.gas_used}`")
        self.send(content)

    def notify_trade_failed(self, action: str, market_id: int, error: str):
        content = (f"❌ **Myriad {action} failed**\n"
                   f"Market ID: `{market_id}`\n"
                   f"Error: {error}")
        self.send(content)
