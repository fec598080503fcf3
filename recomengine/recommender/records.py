"""Parsing of raw rating lines into interaction records.

Input files hold one ``user_id,item_id,rating,timestamp`` record per line,
with no header and no escaping. A path may point at a single file or at a
directory of part files.
"""

import logging
import math
import re
from pathlib import Path
from typing import Iterable, Iterator, List, NamedTuple, Optional, Union

from recomengine.recommender.exceptions import MalformedRecordError

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = ","
NUM_FIELDS = 4

# Ids are 32-bit and timestamps 64-bit signed integers.
MAX_ID = 2**31 - 1
MIN_TIMESTAMP = -(2**63)
MAX_TIMESTAMP = 2**63 - 1

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


class Interaction(NamedTuple):
    """A single user rating of an item."""

    user_id: int
    item_id: int
    rating: float
    timestamp: int


def _parse_int(value: str, field: str, line: str, low: int, high: int) -> int:
    # Plain ASCII digits only: no whitespace, underscores or other numerals.
    if not _INTEGER_PATTERN.fullmatch(value):
        raise MalformedRecordError(line, f"{field} is not an integer")
    number = int(value)
    if not low <= number <= high:
        raise MalformedRecordError(line, f"{field} is out of range [{low}, {high}]")
    return number


def parse_interaction(line: str, delimiter: str = DEFAULT_DELIMITER) -> Interaction:
    """Parse one delimited line into an Interaction.

    Args:
        line: Raw text line, with or without a trailing newline.
        delimiter: Field separator (default: ",").

    Returns:
        The parsed Interaction.

    Raises:
        MalformedRecordError: If the line does not hold exactly four fields,
            if an id or the timestamp is not a plain decimal integer within
            its range (ids: 0 to 2**31 - 1, timestamp: signed 64-bit), or if
            the rating is not a finite number.

    Example:
        >>> parse_interaction("196,242,3.0,881250949")
        Interaction(user_id=196, item_id=242, rating=3.0, timestamp=881250949)
    """
    raw = line.rstrip("\r\n")
    fields = raw.split(delimiter)
    if len(fields) != NUM_FIELDS:
        raise MalformedRecordError(
            raw, f"expected {NUM_FIELDS} fields, got {len(fields)}"
        )

    user_id = _parse_int(fields[0], "user_id", raw, 0, MAX_ID)
    item_id = _parse_int(fields[1], "item_id", raw, 0, MAX_ID)
    try:
        rating = float(fields[2])
    except ValueError:
        raise MalformedRecordError(raw, "rating is not a number") from None
    timestamp = _parse_int(fields[3], "timestamp", raw, MIN_TIMESTAMP, MAX_TIMESTAMP)

    if not math.isfinite(rating):
        raise MalformedRecordError(raw, "rating must be finite")

    return Interaction(user_id, item_id, rating, timestamp)


def format_interaction(
    record: Interaction, delimiter: str = DEFAULT_DELIMITER
) -> str:
    """Render an Interaction in the input line format (no newline)."""
    return delimiter.join(
        (
            str(record.user_id),
            str(record.item_id),
            repr(float(record.rating)),
            str(record.timestamp),
        )
    )


def iter_interactions(
    lines: Iterable[str],
    strict: bool = False,
    delimiter: str = DEFAULT_DELIMITER,
    source: Optional[str] = None,
) -> Iterator[Interaction]:
    """Lazily parse an iterable of lines.

    Blank lines are ignored. Malformed lines are logged and skipped, unless
    ``strict`` is set, in which case the first one raises.

    Args:
        lines: Source lines.
        strict: If True, re-raise MalformedRecordError with the line number.
        delimiter: Field separator.
        source: Name of the file the lines come from, used in log messages
            and errors.

    Yields:
        Parsed Interaction records in input order.
    """
    where = f"{source}, line" if source is not None else "line"
    n_skipped = 0
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            yield parse_interaction(line, delimiter)
        except MalformedRecordError as e:
            if strict:
                raise MalformedRecordError(
                    e.line, e.reason, line_number, source
                ) from e
            n_skipped += 1
            logger.warning(
                f"Skipping malformed record on {where} {line_number}: {e.reason}",
                extra={"source": source, "line_number": line_number, "reason": e.reason},
            )

    if n_skipped:
        logger.warning(f"Skipped {n_skipped} malformed records")


def _data_files(directory: Path) -> list:
    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and not path.name.startswith((".", "_"))
    )


def input_files(path: Union[str, Path]) -> List[Path]:
    """Files making up an input path, in read order.

    Hidden files and marker files (names starting with "." or "_") inside a
    directory are skipped; the rest are read in sorted name order.

    Raises:
        FileNotFoundError: If the path does not exist.
    """
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Input path not found: {path}")

    files = _data_files(source) if source.is_dir() else [source]
    logger.info(f"Reading interactions from {len(files)} file(s) under {path}")
    return files


def read_interactions(
    path: Union[str, Path],
    strict: bool = False,
    delimiter: str = DEFAULT_DELIMITER,
    encoding: Optional[str] = "utf-8",
) -> Iterator[Interaction]:
    """Lazily parse every record under a file or directory path.

    Line numbers restart at 1 for each part file, and malformed lines are
    reported together with the file they came from.
    """
    for file_path in input_files(path):
        # Undecodable bytes become U+FFFD so only their own line is rejected.
        with open(file_path, "r", encoding=encoding, errors="replace") as f:
            yield from iter_interactions(
                f, strict=strict, delimiter=delimiter, source=file_path.name
            )
