"""Row decoders passed to the select primitives."""

import sqlite3
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

# Given one result row, produce a value. Called once per row.
RowDecoder = Callable[[sqlite3.Row], T]


def single_integer() -> RowDecoder[Optional[int]]:
    """Decode the first column as an integer.

    A NULL column gives None rather than 0.
    """
    return lambda row: None if row[0] is None else int(row[0])


def single_real() -> RowDecoder[Optional[float]]:
    """Decode the first column as a float; NULL gives None rather than 0.0."""
    return lambda row: None if row[0] is None else float(row[0])


def single_string() -> RowDecoder[Optional[str]]:
    """Decode the first column as text; NULL gives None."""
    return lambda row: None if row[0] is None else str(row[0])


def to_boolean(row: sqlite3.Row, index: int) -> bool:
    """Read an INTEGER 0/1 column as a bool; index is 0-based."""
    return row[index] == 1
