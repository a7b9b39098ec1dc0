# src/e2viz/ui/plots.py
from PySide6.QtCore import Qt
from PySide6.QtWidgets import QWidget, QVBoxLayout
import pyqtgraph as pg


class PlotWidget(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        layout = QVBoxLayout(self)

        self.plot_widget = pg.PlotWidget()
        self.plot_widget.setLabel("left", "E2 (pg/mL)")
        self.plot_widget.setLabel("bottom", "Days since first dose")
        self.plot_widget.showGrid(x=True, y=True, alpha=0.3)
        self.plot_widget.addLegend()
        layout.addWidget(self.plot_widget)

        self.curves = {}

    def plot_curves(self, results: dict[str, tuple], unit: str = "pg/mL", dashed: tuple[str, ...] = ()):
        self.plot_widget.clear()
        self.plot_widget.setLabel("left", f"E2 ({unit})")
        self.curves = {}
        for label, (t, C) in results.items():
            pen = pg.mkPen(width=2, style=Qt.PenStyle.DashLine) if label in dashed else pg.mkPen(width=2)
            self.curves[label] = self.plot_widget.plot(t, C, pen=pen, name=label)

    def clear(self):
        self.plot_widget.clear()
        self.curves = {}
