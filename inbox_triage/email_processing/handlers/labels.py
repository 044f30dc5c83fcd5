"""
Category to mailbox label resolution.
"""

import logging
from typing import Optional

from inbox_triage.errors import TransportError
from inbox_triage.integrations.gmail.client import GmailClient

logger = logging.getLogger(__name__)


class LabelResolver:
    """
    Looks up label ids by name against the mailbox's current label catalog.

    The catalog is fetched on every call and never cached, so labels created
    or renamed between triage and job execution are picked up.
    """

    def __init__(self, gmail: GmailClient):
        self.gmail = gmail

    async def resolve_label_id(self, name: str) -> Optional[str]:
        """
        Return the id of the label named ``name``, or None when it does not exist.

        A failed catalog request is logged and also yields None, so callers skip
        the label mutation and carry on.
        """
        try:
            labels = await self.gmail.list_labels()
        except TransportError as e:
            logger.error(f"Error fetching label ID for '{name}': {e}")
            return None

        label = next((l for l in labels if l.get('name') == name), None)
        if label is None:
            logger.warning(f"Label '{name}' not found.")
            return None
        return label.get('id')
