"""
UUIDv7 generator following RFC 9562.

Record identifiers are time-ordered: the first 48 bits hold the Unix time in
milliseconds, so records created later sort after earlier ones and SQLite
primary-key inserts stay clustered. Loans listed by id therefore come out in
checkout order for records created by the same process.

RFC 9562: https://www.rfc-editor.org/rfc/rfc9562.html
"""

import os
import time
from uuid import UUID


def uuid7() -> UUID:
    """
    Generate a UUIDv7.

    Layout (128 bits):
    - 48 bits: Unix timestamp in milliseconds
    - 4 bits: version (0111)
    - 12 bits: random
    - 2 bits: variant (10)
    - 62 bits: random

    Returns:
        A uuid.UUID instance with version 7.
    """
    timestamp_ms = int(time.time() * 1000)
    random_bytes = os.urandom(10)

    ts_bytes = timestamp_ms.to_bytes(6, byteorder="big")
    version_byte = 0x70 | (random_bytes[0] & 0x0F)
    variant_byte = 0x80 | (random_bytes[2] & 0x3F)

    uuid_bytes = (
        ts_bytes
        + bytes([version_byte, random_bytes[1], variant_byte])
        + random_bytes[3:10]
    )
    return UUID(bytes=uuid_bytes)
