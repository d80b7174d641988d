from __future__ import annotations

import uuid


def new_uuid() -> str:
    """Generate a UUID4 string."""
    return str(uuid.uuid4())


def new_op_id() -> str:
    """Generate a new queued Operation ID."""
    return new_uuid()


def new_entity_id() -> str:
    """Generate an id for an entity saved without one."""
    return new_uuid()


def remote_doc_id(owner_id: str, entity_id: str) -> str:
    """Remote document id for an owned entity: '<owner>_<entity>'."""
    return f"{owner_id}_{entity_id}"


def strip_owner_prefix(owner_id: str, doc_id: str) -> str:
    """Inverse of remote_doc_id; returns doc_id unchanged when not prefixed."""
    prefix = f"{owner_id}_"
    if doc_id.startswith(prefix) and len(doc_id) > len(prefix):
        return doc_id[len(prefix):]
    return doc_id
