"""Tests for byte-size formatting."""

from __future__ import annotations

import pytest

from chloride.utils.formatting import format_file_size


class TestFormatFileSize:
    """Tests for format_file_size."""

    def test_zero(self) -> None:
        """Zero renders as bytes without decimals."""
        assert format_file_size(0) == "0 B"

    def test_zero_long_form(self) -> None:
        assert format_file_size(0, long_zero=True) == "0 Bytes"

    def test_plain_bytes(self) -> None:
        assert format_file_size(500) == "500 B"
        assert format_file_size(1023) == "1023 B"

    def test_exact_kilobyte(self) -> None:
        assert format_file_size(1024) == "1.0 KB"

    def test_exact_megabyte(self) -> None:
        assert format_file_size(1048576) == "1.0 MB"

    def test_fractional_value(self) -> None:
        assert format_file_size(1536) == "1.5 KB"

    def test_custom_decimals(self) -> None:
        assert format_file_size(1048576, decimals=2) == "1.00 MB"

    def test_gigabytes(self) -> None:
        assert format_file_size(3 * 1024**3) == "3.0 GB"

    def test_capped_at_gigabytes(self) -> None:
        """Values past GB stay in GB."""
        assert format_file_size(2 * 1024**4) == "2048.0 GB"

    def test_just_below_unit_boundary(self) -> None:
        """Values just under a power of 1024 stay in the lower unit."""
        assert format_file_size(1024**2 - 1).endswith(" KB")
        assert format_file_size(1024**3 - 1).endswith(" MB")

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            format_file_size(-1)
