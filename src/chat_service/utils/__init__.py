from .helpers import flatten_history, to_camel
from .ids import id_timestamp, is_valid_id, new_id

__all__ = ["flatten_history", "id_timestamp", "is_valid_id", "new_id", "to_camel"]
