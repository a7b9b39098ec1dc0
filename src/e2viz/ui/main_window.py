# src/e2viz/ui/main_window.py
import logging

from PySide6.QtWidgets import QMainWindow, QWidget, QHBoxLayout, QStatusBar

from .controls import ControlsPanel
from .plots import PlotWidget
from ..request import SimulateRequest
from e2engine.simulate import run_series, run_steady_state
from e2engine.metrics import cmax_tmax, auc_trapz

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("E2 Kinetics")
        self.resize(1100, 680)

        central = QWidget(self); self.setCentralWidget(central)
        root = QHBoxLayout(central)

        self.controls = ControlsPanel()
        self.plot = PlotWidget()
        root.addWidget(self.controls, 0)
        root.addWidget(self.plot, 1)

        self.status = QStatusBar(); self.setStatusBar(self.status)

        self.controls.simulateRequested.connect(self.on_simulate)

        # first run using current control values
        self.controls._emit_request()

    def on_simulate(self, req: SimulateRequest):
        try:
            t, C = run_series(req.series, t_end=req.t_end_days, dt=req.dt_days)
            curves = {req.formulation: (t, C)}
            dashed: tuple[str, ...] = ()
            if req.steady_state:
                curves["steady state"] = run_steady_state(
                    req.formulation, req.amount_mg, req.interval_days,
                    t_end=req.t_end_days, dt=req.dt_days,
                    conversion_factor=req.series.conversion_factor,
                )
                dashed = ("steady state",)
            self.plot.plot_curves(curves, unit=req.display_unit, dashed=dashed)
            peak, t_peak = cmax_tmax(t, C)
            msg = (f"Cmax {peak:.1f} {req.display_unit} on day {t_peak:.1f} | "
                   f"AUC {auc_trapz(t, C):.0f}")
            self.status.showMessage(msg, 5000)
        except Exception as e:
            logger.exception("Simulation failed")
            self.status.showMessage(f"Error: {e}", 8000)
