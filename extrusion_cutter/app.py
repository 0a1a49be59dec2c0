from __future__ import annotations

import logging
import os
import sys
from typing import List, Optional

from PySide6 import QtWidgets

from .models import CutsTableModel
from .io_utils import load_cuts_table, export_plan_csv
from .optimizer import (
    DEFAULT_CUTS,
    DEFAULT_KERF,
    DEFAULT_STOCK_COUNT,
    DEFAULT_STOCK_LENGTH,
    CutPlan,
    CutRequest,
    PlanInputs,
    find_oversized,
    plan_cuts,
    summarize_plans,
    summary_lines,
)
from .pdf_export import export_plan_pdf
from .units import Unit, fmt_length

logger = logging.getLogger(__name__)


def _unit_combo(selected: Unit) -> QtWidgets.QComboBox:
    combo = QtWidgets.QComboBox()
    for u in Unit:
        combo.addItem(u.value)
    combo.setCurrentIndex(list(Unit).index(selected))
    return combo


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("Aluminum Extrusion Cut Calculator")
        self.resize(1100, 700)

        self.cuts_model = CutsTableModel([CutRequest(length=l, quantity=q) for l, q in DEFAULT_CUTS])

        self.count_spin = QtWidgets.QSpinBox()
        self.count_spin.setRange(1, 10000)
        self.count_spin.setValue(DEFAULT_STOCK_COUNT)

        self.length_spin = QtWidgets.QDoubleSpinBox()
        self.length_spin.setRange(1.0, 1_000_000.0)
        self.length_spin.setDecimals(2)
        self.length_spin.setValue(DEFAULT_STOCK_LENGTH)
        self.length_unit = _unit_combo(Unit.MM)

        # Kerf has its own unit, independent from the stock/cut lengths.
        self.kerf_spin = QtWidgets.QDoubleSpinBox()
        self.kerf_spin.setRange(0.0, 1000.0)
        self.kerf_spin.setDecimals(3)
        self.kerf_spin.setSingleStep(0.1)
        self.kerf_spin.setValue(DEFAULT_KERF)
        self.kerf_unit = _unit_combo(Unit.MM)

        self.status_box = QtWidgets.QPlainTextEdit()
        self.status_box.setReadOnly(True)

        self.cuts_view = QtWidgets.QTableView()
        self.cuts_view.setModel(self.cuts_model)
        self.cuts_view.horizontalHeader().setStretchLastSection(True)
        self.cuts_view.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)

        self.plan_view = QtWidgets.QTableWidget()
        self.plan_view.setColumnCount(4)
        self.plan_view.horizontalHeader().setStretchLastSection(True)
        self.plan_view.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)

        self.btn_load_cuts = QtWidgets.QPushButton("Load Cuts (CSV/XLSX)")
        self.btn_add_cut = QtWidgets.QPushButton("Add Cut")
        self.btn_del_cut = QtWidgets.QPushButton("Delete Cut Row(s)")
        self.btn_export = QtWidgets.QPushButton("Export Plan (CSV)")
        self.btn_export_pdf = QtWidgets.QPushButton("Export Plan (PDF)")

        form = QtWidgets.QFormLayout()
        form.addRow("Number of extrusions:", self.count_spin)
        length_row = QtWidgets.QHBoxLayout()
        length_row.addWidget(self.length_spin)
        length_row.addWidget(self.length_unit)
        form.addRow("Extrusion length:", length_row)
        kerf_row = QtWidgets.QHBoxLayout()
        kerf_row.addWidget(self.kerf_spin)
        kerf_row.addWidget(self.kerf_unit)
        form.addRow("Blade width:", kerf_row)

        cuts_btns = QtWidgets.QHBoxLayout()
        cuts_btns.addWidget(self.btn_load_cuts)
        cuts_btns.addWidget(self.btn_add_cut)
        cuts_btns.addWidget(self.btn_del_cut)
        cuts_btns.addStretch(1)

        left = QtWidgets.QVBoxLayout()
        left.addLayout(form)
        left.addSpacing(8)
        left.addWidget(QtWidgets.QLabel("Cuts (length + qty + optional label)"))
        left.addLayout(cuts_btns)
        left.addWidget(self.cuts_view, stretch=3)

        export_btns = QtWidgets.QHBoxLayout()
        export_btns.addStretch(1)
        export_btns.addWidget(self.btn_export)
        export_btns.addWidget(self.btn_export_pdf)

        right = QtWidgets.QVBoxLayout()
        right.addWidget(QtWidgets.QLabel("Cut plan"))
        right.addWidget(self.plan_view, stretch=4)
        right.addWidget(QtWidgets.QLabel("Summary"))
        right.addWidget(self.status_box, stretch=2)
        right.addLayout(export_btns)

        splitter = QtWidgets.QSplitter()
        left_widget = QtWidgets.QWidget()
        left_widget.setLayout(left)
        right_widget = QtWidgets.QWidget()
        right_widget.setLayout(right)
        splitter.addWidget(left_widget)
        splitter.addWidget(right_widget)
        splitter.setStretchFactor(0, 2)
        splitter.setStretchFactor(1, 3)

        self.setCentralWidget(splitter)

        self._last_plans: List[CutPlan] = []
        self._last_inputs: Optional[PlanInputs] = None
        self._cuts_source_path: Optional[str] = None

        self.btn_load_cuts.clicked.connect(self.on_load_cuts)
        self.btn_add_cut.clicked.connect(lambda: self.cuts_model.add_row())
        self.btn_del_cut.clicked.connect(self.on_delete_cuts)
        self.btn_export.clicked.connect(self.on_export)
        self.btn_export_pdf.clicked.connect(self.on_export_pdf)

        # Any input change replans from the current snapshot.
        self.count_spin.valueChanged.connect(self.recompute)
        self.length_spin.valueChanged.connect(self.recompute)
        self.kerf_spin.valueChanged.connect(self.recompute)
        self.length_unit.currentIndexChanged.connect(self.recompute)
        self.kerf_unit.currentIndexChanged.connect(self.recompute)
        self.cuts_model.dataChanged.connect(self.recompute)
        self.cuts_model.rowsInserted.connect(self.recompute)
        self.cuts_model.rowsRemoved.connect(self.recompute)
        self.cuts_model.modelReset.connect(self.recompute)

        self.recompute()

    def log(self, msg: str) -> None:
        self.status_box.appendPlainText(msg)

    def current_inputs(self) -> PlanInputs:
        return PlanInputs(
            stock_count=int(self.count_spin.value()),
            stock_length=float(self.length_spin.value()),
            length_unit=Unit(self.length_unit.currentText()),
            kerf_width=float(self.kerf_spin.value()),
            kerf_unit=Unit(self.kerf_unit.currentText()),
            cuts=tuple(self.cuts_model.rows()),
        )

    def recompute(self, *_args) -> None:
        inputs = self.current_inputs()
        if inputs == self._last_inputs:
            return
        self._last_inputs = inputs
        self.cuts_model.set_oversized(find_oversized(inputs))
        try:
            plans = plan_cuts(inputs)
        except ValueError as e:
            logger.warning("Planning failed: %s", e)
            self._last_plans = []
            self.status_box.clear()
            self.log(f"Cannot plan: {e}")
            return
        self._last_plans = plans
        self.render_result(plans, inputs)

    def render_result(self, plans: List[CutPlan], inputs: PlanInputs) -> None:
        unit = inputs.length_unit.value
        self.plan_view.setHorizontalHeaderLabels(["Bar #", f"Cuts ({unit})", "Cut count", f"Waste ({unit})"])

        self.plan_view.setRowCount(0)
        for i, plan in enumerate(plans, start=1):
            row = self.plan_view.rowCount()
            self.plan_view.insertRow(row)
            self.plan_view.setItem(row, 0, QtWidgets.QTableWidgetItem(str(i)))
            self.plan_view.setItem(row, 1, QtWidgets.QTableWidgetItem("; ".join(fmt_length(c) for c in plan.cuts)))
            self.plan_view.setItem(row, 2, QtWidgets.QTableWidgetItem(str(len(plan.cuts))))
            self.plan_view.setItem(row, 3, QtWidgets.QTableWidgetItem(fmt_length(plan.waste)))

        self.plan_view.resizeColumnsToContents()

        self.status_box.clear()
        for line in summary_lines(summarize_plans(plans, inputs), inputs.length_unit):
            self.log(f"→ {line}")

        oversized = find_oversized(inputs)
        if oversized:
            self.log("")
            self.log("Exceeds extrusion length:")
            for i in oversized:
                self.log(f"  - row {i + 1}: {fmt_length(inputs.cuts[i].length)} {unit}")

    def _pick_file(self, title: str, filters: str) -> Optional[str]:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(self, title, "", filters)
        return path or None

    def on_load_cuts(self) -> None:
        path = self._pick_file("Load Cuts", "Data Files (*.csv *.xlsx *.xls)")
        if not path:
            return
        try:
            items = load_cuts_table(path)
        except Exception as e:
            QtWidgets.QMessageBox.critical(self, "Load error", str(e))
            return
        if not items:
            QtWidgets.QMessageBox.warning(self, "Load error", "The file contains no cut rows.")
            return
        self._cuts_source_path = path
        self.cuts_model.set_rows(items)

    def on_delete_cuts(self) -> None:
        rows = sorted({idx.row() for idx in self.cuts_view.selectionModel().selectedRows()})
        if rows:
            self.cuts_model.remove_rows(rows)

    def _default_export_path(self, ext: str) -> str:
        """Suggest a default export filename.

        If the user loaded a cuts file, base the export name on that filename.
        Otherwise, fall back to a generic name.
        """
        if self._cuts_source_path:
            base = os.path.splitext(os.path.basename(self._cuts_source_path))[0]
            name = f"{base}_cut_plan{ext}"
            return os.path.join(os.path.dirname(self._cuts_source_path), name)
        return f"cut_plan{ext}"

    def _pdf_title(self) -> str:
        if self._cuts_source_path:
            stem = os.path.splitext(os.path.basename(self._cuts_source_path))[0]
            return f"Cut plan - {stem}"
        return "Cut plan"

    def on_export(self) -> None:
        if self._last_inputs is None:
            return
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Export Plan CSV", self._default_export_path(".csv"), "CSV (*.csv)"
        )
        if not path:
            return
        try:
            export_plan_csv(path, self._last_plans, self._last_inputs)
            QtWidgets.QMessageBox.information(
                self, "Exported", f"Exported:\n{path}\n\nAlso wrote:\n{path}.summary.csv"
            )
        except Exception as e:
            QtWidgets.QMessageBox.critical(self, "Export error", str(e))

    def on_export_pdf(self) -> None:
        if self._last_inputs is None:
            return
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Export Plan PDF", self._default_export_path(".pdf"), "PDF (*.pdf)"
        )
        if not path:
            return
        try:
            export_plan_pdf(path, self._last_plans, self._last_inputs, title=self._pdf_title())
            QtWidgets.QMessageBox.information(self, "Exported", f"Exported:\n{path}")
        except Exception as e:
            QtWidgets.QMessageBox.critical(self, "Export error", str(e))


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = QtWidgets.QApplication(sys.argv)
    w = MainWindow()
    w.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
