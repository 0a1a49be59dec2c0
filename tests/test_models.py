from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6 import QtCore, QtGui  # noqa: E402

from extrusion_cutter.models import CutsTableModel  # noqa: E402
from extrusion_cutter.optimizer import CutRequest  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def qt_app():
    app = QtGui.QGuiApplication.instance() or QtGui.QGuiApplication([])
    yield app


def _model(*rows: CutRequest) -> CutsTableModel:
    return CutsTableModel(list(rows) or [CutRequest(length=1500, quantity=6, label="rail")])


# =============================================================================
# editing
# =============================================================================


@pytest.mark.parametrize("value", ["0", "abc", -20])
def test_length_edits_are_clamped(value):
    model = _model()
    assert model.setData(model.index(0, 0), value)
    assert model.rows()[0] == CutRequest(length=1.0, quantity=6, label="rail")


@pytest.mark.parametrize("value", ["0", "abc", -3])
def test_quantity_edits_are_clamped(value):
    model = _model()
    assert model.setData(model.index(0, 1), value)
    assert model.rows()[0] == CutRequest(length=1500.0, quantity=1, label="rail")


def test_label_edit_keeps_length_and_quantity():
    model = _model()
    assert model.setData(model.index(0, 2), "stile")
    assert model.rows()[0] == CutRequest(length=1500.0, quantity=6, label="stile")


def test_display_keeps_fractional_lengths():
    model = _model(CutRequest(length=1.25, quantity=2))
    assert model.data(model.index(0, 0)) == "1.25"
    assert model.data(model.index(0, 1)) == 2


def test_edit_emits_data_changed():
    model = _model()
    seen = []
    model.dataChanged.connect(lambda top, bottom, roles=None: seen.append((top.row(), top.column())))

    model.setData(model.index(0, 1), "4")

    assert seen == [(0, 1)]


# =============================================================================
# oversized rows
# =============================================================================


def test_oversized_rows_are_red_with_a_tooltip():
    model = _model(CutRequest(length=2500, quantity=1), CutRequest(length=500, quantity=1))
    model.set_oversized([0])

    brush = model.data(model.index(0, 0), QtCore.Qt.ForegroundRole)
    assert isinstance(brush, QtGui.QBrush)
    assert brush.color() == QtGui.QColor("red")
    assert model.data(model.index(0, 1), QtCore.Qt.ToolTipRole) == "Exceeds extrusion length"

    assert model.data(model.index(1, 0), QtCore.Qt.ForegroundRole) is None
    assert model.data(model.index(1, 0), QtCore.Qt.ToolTipRole) is None


def test_clearing_oversized_removes_the_highlight():
    model = _model()
    model.set_oversized([0])
    model.set_oversized([])
    assert model.data(model.index(0, 0), QtCore.Qt.ForegroundRole) is None


# =============================================================================
# adding / removing rows
# =============================================================================


def test_last_row_cannot_be_removed():
    model = _model()
    model.remove_rows([0])
    assert model.rowCount() == 1


def test_remove_rows_keeps_at_least_one():
    model = _model(CutRequest(length=100, quantity=1), CutRequest(length=200, quantity=1), CutRequest(length=300, quantity=1))
    model.remove_rows([0, 2])
    assert [r.length for r in model.rows()] == [200]

    model.remove_rows([0])
    assert model.rowCount() == 1


def test_add_row_appends_a_default_cut():
    model = _model()
    model.add_row()
    assert model.rowCount() == 2
    assert model.rows()[1].quantity == 1
