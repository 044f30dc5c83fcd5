"""
Gmail integration package.

Provides the mailbox gateway used by the triage pipeline and the factory
that builds its authenticated session.
"""

from .auth_manager import GmailAuthenticationManager
from .client import GmailClient, build_raw_message

__all__ = ["GmailAuthenticationManager", "GmailClient", "build_raw_message"]
