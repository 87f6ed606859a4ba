"""Reader for tab-separated spreadsheet data files."""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterator

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class DataDictionary:
    """Row cursor over a tab-separated file whose first row names the columns."""

    def __init__(self, data: bytes):
        text = data.decode("utf-8", "surrogateescape")
        self._reader = csv.reader(io.StringIO(text, newline=""), delimiter="\t")
        header = self._read_row()
        if header is None:
            raise ValueError("data dictionary has no header row")
        self.field_names: list[str] = header
        self._lookup = {name: index for index, name in enumerate(header)}
        self.record: list[str] | None = None

    def _read_row(self) -> list[str] | None:
        try:
            for row in self._reader:
                if row:
                    return row
        except csv.Error as error:
            raise ValueError(str(error)) from error
        return None

    def next(self) -> bool:
        """Advance to the next row, skipping Expansion rows; False at the end."""
        while True:
            row = self._read_row()
            if row is None:
                self.record = None
                return False
            if len(row) != len(self.field_names):
                raise ValueError(
                    f"wrong number of fields: expected {len(self.field_names)}, got {len(row)}"
                )
            if row[0] != "Expansion":
                self.record = row
                return True

    def __iter__(self) -> Iterator[DataDictionary]:
        """Iterate over rows, positioning the dictionary on each one."""
        while self.next():
            yield self

    def get_string(self, field: str) -> str:
        """Return the value of a column in the current row.

        An unknown column name reads the first column.
        """
        if self.record is None:
            raise LookupError("no current row")
        return self.record[self._lookup.get(field, 0)]

    def get_number(self, field: str) -> int:
        """Return a column as an integer, or 0 when it is not one."""
        text = self.get_string(field)
        if not _INTEGER.fullmatch(text):
            return 0
        value = int(text)
        if not _INT64_MIN <= value <= _INT64_MAX:
            return 0
        return value

    def get_list(self, field: str) -> list[str]:
        """Split a comma-separated column."""
        return self.get_string(field).split(",")

    def get_bool(self, field: str) -> bool:
        """Return a 0/1 column as a bool."""
        value = self.get_number(field)
        if value > 1:
            raise ValueError(f"Bool on non-bool field {field}")
        return value == 1