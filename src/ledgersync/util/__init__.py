from .ids import new_entity_id, new_op_id, new_uuid, remote_doc_id, strip_owner_prefix
from .time import normalize_dt, now_ms, parse_rfc3339, timestamp_of, to_rfc3339

__all__ = [
    "new_uuid",
    "new_op_id",
    "new_entity_id",
    "remote_doc_id",
    "strip_owner_prefix",
    "now_ms",
    "timestamp_of",
    "parse_rfc3339",
    "to_rfc3339",
    "normalize_dt",
]
