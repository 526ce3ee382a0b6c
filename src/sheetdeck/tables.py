"""Table stores: named worksheets of rows.

``WorkbookTableStore`` reads and writes an .xlsx workbook with openpyxl;
every write is saved straight back to disk. ``InMemoryTableStore`` holds
rows in a dict.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from openpyxl import Workbook, load_workbook

from .exceptions import TableNotFoundError
from .interfaces import Rows

logger = logging.getLogger(__name__)


def _trim_row(row: Sequence[Any]) -> list[Any]:
    values = list(row)
    while values and values[-1] is None:
        values.pop()
    return values


class WorkbookTableStore:
    """Tables stored as worksheets of an .xlsx workbook.

    Args:
        path: Workbook file. If it does not exist, an empty workbook is
            created on first write.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._workbook: Optional[Workbook] = None

    @property
    def workbook(self) -> Workbook:
        if self._workbook is None:
            if self.path.exists():
                logger.debug(f"Loading workbook: {self.path}")
                self._workbook = load_workbook(self.path)
            else:
                self._workbook = Workbook()
                # Drop the implicit "Sheet"
                self._workbook.remove(self._workbook.active)
        return self._workbook

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.workbook.save(self.path)

    def table_names(self) -> list[str]:
        return list(self.workbook.sheetnames)

    def has_table(self, name: str) -> bool:
        return name in self.workbook.sheetnames

    def read_table(self, name: str) -> Rows:
        """Return every non-empty row of a sheet as a list of cell values.

        Raises:
            TableNotFoundError: If the sheet does not exist.
        """
        if not self.has_table(name):
            raise TableNotFoundError(f"Sheet not found: {name}")
        rows = []
        for row in self.workbook[name].iter_rows(values_only=True):
            values = _trim_row(row)
            if values:
                rows.append(values)
        return rows

    def write_table(self, name: str, rows: Sequence[Sequence[Any]]) -> None:
        """Clear a sheet (creating it if needed) and write ``rows`` into it."""
        if self.has_table(name):
            # Recreate in place; the append cursor does not rewind on delete_rows
            index = self.workbook.sheetnames.index(name)
            self.workbook.remove(self.workbook[name])
            sheet = self.workbook.create_sheet(name, index)
        else:
            sheet = self.workbook.create_sheet(name)
        for row in rows:
            sheet.append(list(row))
        self._save()
        logger.info(f"Wrote {len(rows)} rows to sheet '{name}'")

    def copy_table(self, source: str, dest: str) -> None:
        """Duplicate a sheet under a new name.

        Raises:
            TableNotFoundError: If the source sheet does not exist.
        """
        if not self.has_table(source):
            raise TableNotFoundError(f"Sheet not found: {source}")
        copied = self.workbook.copy_worksheet(self.workbook[source])
        copied.title = dest
        self._save()
        logger.info(f"Copied sheet '{source}' to '{dest}'")


class InMemoryTableStore:
    """Tables held in memory, keyed by name."""

    def __init__(self, tables: Optional[dict[str, Sequence[Sequence[Any]]]] = None):
        self.tables: dict[str, Rows] = {
            name: [list(row) for row in rows] for name, rows in (tables or {}).items()
        }

    def table_names(self) -> list[str]:
        return list(self.tables)

    def has_table(self, name: str) -> bool:
        return name in self.tables

    def read_table(self, name: str) -> Rows:
        if name not in self.tables:
            raise TableNotFoundError(f"Sheet not found: {name}")
        return [list(row) for row in self.tables[name]]

    def write_table(self, name: str, rows: Sequence[Sequence[Any]]) -> None:
        self.tables[name] = [list(row) for row in rows]

    def copy_table(self, source: str, dest: str) -> None:
        if source not in self.tables:
            raise TableNotFoundError(f"Sheet not found: {source}")
        self.tables[dest] = copy.deepcopy(self.tables[source])
