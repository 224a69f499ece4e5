from .collection_service import CollectionService, HelpService

__all__ = ["CollectionService", "HelpService"]
