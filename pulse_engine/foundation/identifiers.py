"""ID generation for entities created locally."""

from __future__ import annotations

from uuid import uuid4


def new_id() -> str:
    """Generate a new random UUID v4, rendered as a string.

    Entity ids travel through the transport as plain strings, so they are
    never handed out as UUID objects.
    """
    return str(uuid4())
