"""
UUID7 identifiers

uuid_utils generates time-ordered UUID7 values (index friendly for the
payment and reservation tables). They are converted to the standard library
`uuid.UUID` so SQLAlchemy's `Uuid` column type and pydantic accept them as is.
"""

import uuid

import uuid_utils


def new_uuid7() -> uuid.UUID:
    return uuid.UUID(bytes=uuid_utils.uuid7().bytes)
