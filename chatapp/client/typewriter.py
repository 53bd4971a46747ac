"""Cosmetic "typing" reveal of an already complete assistant reply."""
import sys
import time
from typing import Callable, Optional

CHAR_DELAY = 0.01


def _stdout_write(chunk: str) -> None:
    sys.stdout.write(chunk)
    sys.stdout.flush()


def reveal(
    text: str,
    delay: float = CHAR_DELAY,
    write: Optional[Callable[[str], object]] = None,
    sleep: Callable[[float], object] = time.sleep,
) -> None:
    """Write text one character per delay seconds, then a newline."""
    write = write or _stdout_write
    for char in text:
        write(char)
        if delay > 0:
            sleep(delay)
    write("\n")
