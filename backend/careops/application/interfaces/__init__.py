from .document_store import (
    SERVER_TIMESTAMP,
    ChangeFeed,
    Document,
    DocumentStore,
    ServerTimestamp,
)

__all__ = [
    "SERVER_TIMESTAMP",
    "ChangeFeed",
    "Document",
    "DocumentStore",
    "ServerTimestamp",
]
