"""
Tests for the UUIDv7 generator used for every record identifier.

Record ids must be valid version-7 UUIDs, unique, and ordered by creation
time so that listings by id follow insertion order.
"""

import time
from uuid import UUID

from athenaeum.domain.utils.uuid7 import uuid7


class TestUuid7Format:
    """Layout of a generated identifier."""

    def test_returns_uuid_with_version_7(self):
        """uuid7() should return a UUID whose version is 7."""
        result = uuid7()

        assert isinstance(result, UUID)
        assert result.version == 7

    def test_variant_bits_are_10(self):
        """Byte 8 should start with the binary variant marker 10."""
        result = uuid7()

        assert (result.bytes[8] >> 6) & 0x03 == 2

    def test_round_trips_through_text(self):
        """The canonical text form parses back to the same identifier (used by SQLite storage)."""
        result = uuid7()

        assert UUID(str(result)) == result


class TestUuid7Ordering:
    """Time ordering and uniqueness."""

    def test_embeds_current_unix_milliseconds(self):
        """The first 48 bits hold the creation time in milliseconds."""
        before_ms = int(time.time() * 1000)
        result = uuid7()
        after_ms = int(time.time() * 1000)

        extracted = int.from_bytes(result.bytes[:6], byteorder="big")

        assert before_ms <= extracted <= after_ms

    def test_later_ids_sort_after_earlier_ones(self):
        """Ids created in different milliseconds sort in creation order."""
        ids = []
        for _ in range(5):
            ids.append(uuid7())
            time.sleep(0.002)

        assert [str(u) for u in ids] == sorted(str(u) for u in ids)

    def test_ids_within_one_millisecond_are_unique(self):
        """Random bits keep ids unique when many are created at once."""
        ids = {uuid7() for _ in range(1000)}

        assert len(ids) == 1000
