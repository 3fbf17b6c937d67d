"""Document store infrastructure package."""

from .change_feed import FeedBroadcaster, QueueChangeFeed
from .sqlalchemy_document_store import SQLAlchemyDocumentStore

__all__ = ["FeedBroadcaster", "QueueChangeFeed", "SQLAlchemyDocumentStore"]
