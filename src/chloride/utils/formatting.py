"""Display formatting helpers."""

from __future__ import annotations

import math

from chloride.core.constants import FILE_SIZE_UNITS

_KIB = 1024


def format_file_size(size_bytes: int, decimals: int = 1, long_zero: bool = False) -> str:
    """Render a byte count with base-1024 units.

    Picks the largest unit (B, KB, MB, GB) in which the value is >= 1, capped at
    GB. Whole bytes are shown without decimals.

    Args:
        size_bytes: Non-negative byte count
        decimals: Decimal places for KB and above
        long_zero: Render zero as "0 Bytes" instead of "0 B"

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
        >>> format_file_size(1048576, decimals=2)
        '1.00 MB'
    """
    if size_bytes < 0:
        raise ValueError(f"size_bytes must not be negative, got {size_bytes}")
    # log(0) is undefined
    if size_bytes == 0:
        return "0 Bytes" if long_zero else f"0 {FILE_SIZE_UNITS[0]}"

    exponent = min(int(math.floor(math.log(size_bytes, _KIB))), len(FILE_SIZE_UNITS) - 1)
    # Float rounding in log() can land one unit off near exact powers of 1024
    if exponent > 0 and size_bytes < _KIB**exponent:
        exponent -= 1
    elif exponent < len(FILE_SIZE_UNITS) - 1 and size_bytes >= _KIB ** (exponent + 1):
        exponent += 1

    if exponent == 0:
        return f"{size_bytes} {FILE_SIZE_UNITS[0]}"
    value = size_bytes / _KIB**exponent
    return f"{value:.{decimals}f} {FILE_SIZE_UNITS[exponent]}"
