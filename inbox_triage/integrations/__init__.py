from .gmail.client import GmailClient
from .gmail.auth_manager import GmailAuthenticationManager
from .cohere.client import CohereClient

__all__ = [
    'GmailClient',
    'GmailAuthenticationManager',
    'CohereClient',
]
