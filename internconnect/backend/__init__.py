"""Client for the hosted backend-as-a-service."""

from internconnect.backend.auth import AuthChangeEvent, AuthClient, SignUpResult, Subscription
from internconnect.backend.client import BackendClient
from internconnect.backend.persistence import MemorySessionStorage, SessionStorage
from internconnect.backend.query import QueryBuilder, QueryResponse
from internconnect.backend.storage import StorageBucket

__all__ = [
    "AuthChangeEvent",
    "AuthClient",
    "BackendClient",
    "MemorySessionStorage",
    "QueryBuilder",
    "QueryResponse",
    "SessionStorage",
    "SignUpResult",
    "StorageBucket",
    "Subscription",
]
