from .context_cleaner import ContextCleaner

__all__ = ["ContextCleaner"]
