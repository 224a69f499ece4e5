from .common import elapsed_ms, generate_message_id, utc_timestamp

__all__ = ["generate_message_id", "utc_timestamp", "elapsed_ms"]
