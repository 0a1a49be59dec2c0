from __future__ import annotations

from typing import Any, Iterable, List, Optional, Set
from PySide6 import QtCore, QtGui

from .optimizer import DEFAULT_CUT_LENGTH, CutRequest, clamp_length, clamp_quantity
from .units import fmt_length


class CutsTableModel(QtCore.QAbstractTableModel):
    HEADERS = ["length", "qty", "label (optional)"]

    def __init__(self, rows: Optional[List[CutRequest]] = None) -> None:
        super().__init__()
        self._rows: List[CutRequest] = rows or []
        self._oversized: Set[int] = set()

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        return len(self._rows)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        return 3

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation, role: int = QtCore.Qt.DisplayRole) -> Any:
        if role != QtCore.Qt.DisplayRole:
            return None
        if orientation == QtCore.Qt.Horizontal and 0 <= section < len(self.HEADERS):
            return self.HEADERS[section]
        return None

    def flags(self, index: QtCore.QModelIndex) -> QtCore.Qt.ItemFlags:
        if not index.isValid():
            return QtCore.Qt.NoItemFlags
        return QtCore.Qt.ItemIsSelectable | QtCore.Qt.ItemIsEnabled | QtCore.Qt.ItemIsEditable

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole) -> Any:
        if not index.isValid() or not (0 <= index.row() < len(self._rows)):
            return None
        row = self._rows[index.row()]
        if role in (QtCore.Qt.DisplayRole, QtCore.Qt.EditRole):
            if index.column() == 0:
                return fmt_length(row.length)
            if index.column() == 1:
                return row.quantity
            if index.column() == 2:
                return row.label
        if role == QtCore.Qt.ForegroundRole and index.column() == 0 and index.row() in self._oversized:
            return QtGui.QBrush(QtGui.QColor("red"))
        if role == QtCore.Qt.ToolTipRole and index.row() in self._oversized:
            return "Exceeds extrusion length"
        return None

    def setData(self, index: QtCore.QModelIndex, value: Any, role: int = QtCore.Qt.EditRole) -> bool:
        if role != QtCore.Qt.EditRole or not index.isValid():
            return False
        r, c = index.row(), index.column()
        row = self._rows[r]
        # Out-of-range numbers are clamped here so the planner only sees valid rows.
        if c == 0:
            self._rows[r] = CutRequest(length=clamp_length(value), quantity=row.quantity, label=row.label)
        elif c == 1:
            self._rows[r] = CutRequest(length=row.length, quantity=clamp_quantity(value), label=row.label)
        elif c == 2:
            self._rows[r] = CutRequest(length=row.length, quantity=row.quantity, label=str(value))
        else:
            return False
        self.dataChanged.emit(index, index, [QtCore.Qt.DisplayRole, QtCore.Qt.EditRole])
        return True

    def set_rows(self, rows: List[CutRequest]) -> None:
        self.beginResetModel()
        self._rows = rows
        self._oversized = set()
        self.endResetModel()

    def rows(self) -> List[CutRequest]:
        return list(self._rows)

    def set_oversized(self, row_indices: Iterable[int]) -> None:
        marked = set(row_indices)
        if marked == self._oversized or not self._rows:
            self._oversized = marked
            return
        self._oversized = marked
        top = self.index(0, 0)
        bottom = self.index(len(self._rows) - 1, self.columnCount() - 1)
        self.dataChanged.emit(top, bottom, [QtCore.Qt.ForegroundRole, QtCore.Qt.ToolTipRole])

    def add_row(self) -> None:
        self.beginInsertRows(QtCore.QModelIndex(), len(self._rows), len(self._rows))
        self._rows.append(CutRequest(length=DEFAULT_CUT_LENGTH, quantity=1, label=""))
        self.endInsertRows()

    def remove_rows(self, row_indices: List[int]) -> None:
        for r in sorted(set(row_indices), reverse=True):
            # At least one cut row always stays.
            if 0 <= r < len(self._rows) and len(self._rows) > 1:
                self.beginRemoveRows(QtCore.QModelIndex(), r, r)
                self._rows.pop(r)
                self.endRemoveRows()
