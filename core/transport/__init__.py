"""
Messaging Transports

- MessagingTransport / MessageReceiver: the send and receive contracts
- InMemoryTransport: process-local hub with explicit delivery
- HttpRelayTransport: external relayer over HTTP
"""

from .base import MessageReceiver, MessagingTransport
from .http_relay import RELAYER_TOKEN_HEADER, HttpRelayTransport
from .memory import DEFAULT_HUB_ADDRESS, InMemoryTransport

__all__ = [
    "MessageReceiver",
    "MessagingTransport",
    "DEFAULT_HUB_ADDRESS",
    "InMemoryTransport",
    "HttpRelayTransport",
    "RELAYER_TOKEN_HEADER",
]
