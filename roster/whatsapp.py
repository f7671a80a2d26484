import logging
import re
from typing import Any, List
from urllib.parse import quote

import requests

from .errors import DeliveryError, DeliveryNotConfiguredError
from .team_drawer import is_open_slot, gender_of

logger = logging.getLogger(__name__)

OPEN_SLOT_LABEL = 'Open slot'
DEFAULT_TITLE = '*🏐 TEAM DRAW - VOLLEYBALL 🏐*'


def _display_name(entry: Any) -> str:
    if isinstance(entry, dict):
        return entry.get('name', '')
    return getattr(entry, 'name', '')


def format_draw_message(teams: List[List[Any]], title: str = DEFAULT_TITLE) -> str:
    """Render a draw as WhatsApp-flavoured text (asterisks for bold)."""
    lines = [title, '']
    for i, team in enumerate(teams):
        lines.append(f'*Team {i + 1}*')
        for entry in team:
            if is_open_slot(entry):
                lines.append(f'• {OPEN_SLOT_LABEL}')
            else:
                lines.append(f'• {_display_name(entry)} ({gender_of(entry)})')
        lines.append('')
    return '\n'.join(lines).rstrip('\n') + '\n'


def normalize_number(number: str) -> str:
    """wa.me and the Cloud API want digits only, country code included."""
    return re.sub(r'\D', '', number or '')


def build_share_link(teams: List[List[Any]], number: str = None) -> str:
    """Link that opens WhatsApp with the draw pre-filled."""
    text = quote(format_draw_message(teams), safe='')
    digits = normalize_number(number)
    if digits:
        return f'https://wa.me/{digits}?text={text}'
    return f'https://wa.me/?text={text}'


class WhatsAppClient:
    """
    Sends text messages through the WhatsApp Cloud API.
    One client per group, since each group brings its own access token.
    """

    def __init__(self, api_token: str, phone_number_id: str,
                 base_url: str = 'https://graph.facebook.com/v19.0', timeout: int = 10):
        if not api_token or not phone_number_id:
            raise DeliveryNotConfiguredError("WhatsApp delivery is not configured for this group")
        self.api_token = api_token
        self.phone_number_id = phone_number_id
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    @property
    def messages_url(self) -> str:
        return f'{self.base_url}/{self.phone_number_id}/messages'

    def send_text(self, to: str, body: str) -> str:
        """Send a text message. Returns the provider's message id."""
        recipient = normalize_number(to)
        if not recipient:
            raise DeliveryNotConfiguredError("Group has no WhatsApp number")

        payload = {
            'messaging_product': 'whatsapp',
            'to': recipient,
            'type': 'text',
            'text': {'preview_url': False, 'body': body},
        }

        try:
            resp = requests.post(
                self.messages_url,
                json=payload,
                headers={'Authorization': f'Bearer {self.api_token}'},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error("WhatsApp request to %s failed: %s", recipient, e)
            raise DeliveryError(f"WhatsApp unavailable: {e}")

        if resp.status_code >= 400:
            logger.error("WhatsApp rejected message to %s: %s %s", recipient, resp.status_code, resp.text[:200])
            raise DeliveryError(f"WhatsApp rejected the message ({resp.status_code})")

        try:
            data = resp.json()
        except ValueError:
            logger.error("WhatsApp returned a non-JSON body for %s: %s", recipient, resp.text[:200])
            raise DeliveryError("WhatsApp returned an unreadable response")
        message_id = (data.get('messages') or [{}])[0].get('id')
        logger.info("Sent draw to %s (message %s)", recipient, message_id)
        return message_id

    def send_draw(self, to: str, teams: List[List[Any]]) -> str:
        return self.send_text(to, format_draw_message(teams))
