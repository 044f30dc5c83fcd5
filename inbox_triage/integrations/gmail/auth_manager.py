"""
Gmail Session Factory

Builds the authenticated Gmail API service for the mailbox owner from a
stored OAuth refresh token. Acquiring that token (consent screen, callback
handling) happens outside this package.
"""

import logging
from typing import Any, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = [
    'https://www.googleapis.com/auth/gmail.readonly',
    'https://www.googleapis.com/auth/gmail.send',
    'https://www.googleapis.com/auth/gmail.modify'
]


class GmailAuthenticationManager:
    """
    Creates Gmail credentials and services from a configured refresh token.

    The access token is obtained lazily: the first API request refreshes the
    credentials through the token endpoint.
    """

    def __init__(self,
                 client_id: str,
                 client_secret: str,
                 refresh_token: str,
                 token_uri: str = "https://oauth2.googleapis.com/token",
                 scopes: Optional[List[str]] = None):
        if not refresh_token:
            raise ValueError("A Gmail refresh token is required")
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.token_uri = token_uri
        self.scopes = scopes or list(DEFAULT_SCOPES)

    def get_credentials(self) -> Credentials:
        """Build refreshable OAuth2 credentials for the mailbox owner."""
        return Credentials(
            token=None,
            refresh_token=self.refresh_token,
            token_uri=self.token_uri,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.scopes
        )

    def create_gmail_service(self, credentials: Optional[Credentials] = None) -> Any:
        """
        Create an authenticated Gmail API v1 service.

        Args:
            credentials: Credentials to use; built from the refresh token when omitted

        Returns:
            Gmail API service resource
        """
        credentials = credentials or self.get_credentials()
        service = build('gmail', 'v1', credentials=credentials, cache_discovery=False)
        logger.info("Gmail service initialized successfully")
        return service
