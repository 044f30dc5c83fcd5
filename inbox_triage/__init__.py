"""
Inbox triage package.

Fetches unread mail, classifies each message's intent with a language model,
labels it, and queues a canned reply that a separate worker sends.
"""

__version__ = "1.0.0"
