from .cli import CollectionCLI

__all__ = ["CollectionCLI"]
