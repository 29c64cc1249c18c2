"""
PURPOSE: Tests for time and identifier helpers.
"""

import random
import re
from datetime import timezone

from app.utils.time_utils import get_utc_now, new_record_id, random_hex


class TestGetUtcNow:
    def test_timezone_aware(self):
        """Test the returned datetime carries UTC tzinfo."""
        assert get_utc_now().tzinfo == timezone.utc


class TestNewRecordId:
    def test_format(self):
        """Test ids are the prefix plus 12 hex characters."""
        assert re.fullmatch(r"strategy-[0-9a-f]{12}", new_record_id("strategy"))

    def test_unique(self):
        ids = {new_record_id("draft") for _ in range(200)}
        assert len(ids) == 200


class TestRandomHex:
    def test_length_and_alphabet(self):
        value = random_hex(40, random.Random(1))
        assert re.fullmatch(r"0x[0-9a-f]{40}", value)

    def test_seeded_is_reproducible(self):
        assert random_hex(64, random.Random(7)) == random_hex(64, random.Random(7))
