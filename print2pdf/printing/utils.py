"""Small timing and formatting helpers shared by the printing core."""

import logging
import math
import time
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

_IEC_SIZES = ("B", "KiB", "MiB", "GiB")


@contextmanager
def elapsed(message: str, log: Optional[logging.Logger] = None) -> Iterator[None]:
    """Log how long the wrapped block took, whether it succeeded or not."""
    start = time.perf_counter()
    try:
        yield
    finally:
        (log or logger).info(f"{message}: {time.perf_counter() - start:.3f}s")


def humanize_bytes(size: int) -> str:
    """Human readable IEC representation of a byte count."""
    if size < 10:
        return f"{size} B"
    exponent = min(int(math.floor(math.log(size, 1024))), len(_IEC_SIZES) - 1)
    value = math.floor(size / math.pow(1024, exponent) * 10 + 0.5) / 10
    return f"{value:.1f} {_IEC_SIZES[exponent]}"
