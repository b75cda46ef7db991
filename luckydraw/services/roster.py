from __future__ import annotations

import io
import re
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from ..errors import DuplicateNumberError, MalformedInputError, MissingColumnsError
from ..types import Participant, RejectedRow, Roster

NUMBER_COLUMN = "number"
NAME_COLUMN = "name"
REQUIRED_COLUMNS = (NUMBER_COLUMN, NAME_COLUMN)

INVALID_NUMBER = "invalid_number"
BLANK_NAME = "blank_name"

_LEADING_INTEGER = re.compile(r"[+-]?[0-9]+")


def _clean_cell(value: Any) -> str:
    """Return a stripped string, or '' for NaN/None."""
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def _coerce_number(raw: str) -> Optional[int]:
    # leading-integer semantics: "12abc" and "1.5" read as 12 and 1
    match = _LEADING_INTEGER.match(raw)
    if match is None:
        return None
    return int(match.group())


def _decode(raw: Union[str, bytes]) -> str:
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise MalformedInputError() from exc
    return raw.lstrip("\ufeff")


def _read_table(text: str) -> pd.DataFrame:
    # header=None keeps the header row as data so a row wider than the header is a
    # tokenizer error instead of being silently promoted to an index column
    try:
        frame = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        raise MalformedInputError() from exc
    if frame.empty:
        raise MalformedInputError()
    # with keep_default_na=False only the padding of a row shorter than the header is NaN
    if frame.iloc[1:].isna().to_numpy().any():
        raise MalformedInputError()
    return frame


def parse_roster(raw: Union[str, bytes]) -> Roster:
    """Parse delimited participant text into a validated roster.

    The first row is the header and must name a ``number`` and a ``name``
    column (matched case-insensitively after trimming). Rows whose number
    does not start with an integer or whose trimmed name is empty are dropped
    and reported in ``Roster.rejected``. A number that appears on more than
    one surviving row rejects the whole input.

    Raises:
        MalformedInputError: the text cannot be tokenized, or a row has
            fewer or more fields than the header.
        MissingColumnsError: a required column is absent.
        DuplicateNumberError: a participant number is repeated.
    """
    frame = _read_table(_decode(raw))

    header = [_clean_cell(value).lower() for value in frame.iloc[0]]
    missing = [column for column in REQUIRED_COLUMNS if column not in header]
    if missing:
        raise MissingColumnsError(missing)

    number_idx = header.index(NUMBER_COLUMN)
    name_idx = header.index(NAME_COLUMN)

    participants: List[Participant] = []
    rejected: List[RejectedRow] = []
    seen: Dict[int, int] = {}
    for position, row in enumerate(frame.iloc[1:].itertuples(index=False, name=None), start=1):
        raw_number = _clean_cell(row[number_idx])
        name = _clean_cell(row[name_idx])

        number = _coerce_number(raw_number)
        if number is None:
            rejected.append(RejectedRow(position, INVALID_NUMBER, raw_number, name))
            continue
        if not name:
            rejected.append(RejectedRow(position, BLANK_NAME, raw_number, name))
            continue

        seen[number] = seen.get(number, 0) + 1
        participants.append(Participant(number=number, name=name))

    duplicates = [number for number, count in seen.items() if count > 1]
    if duplicates:
        raise DuplicateNumberError(duplicates)

    return Roster(participants=tuple(participants), rejected=tuple(rejected))
