# src/e2viz/ui/controls.py
from PySide6.QtCore import Signal
from PySide6.QtWidgets import (QVBoxLayout, QPushButton, QDoubleSpinBox, QSpinBox, QComboBox,
                               QCheckBox, QFrame, QLabel)

from e2engine.types import FORMULATIONS
from e2engine.settings import settings
from ..request import SimulateRequest, build_request


class ControlsPanel(QFrame):
    simulateRequested = Signal(SimulateRequest)

    def __init__(self):
        super().__init__()
        self.setFrameShape(QFrame.StyledPanel)
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Controls"))

        # --- Dosing ---
        layout.addWidget(QLabel("Dosing"))
        self.formulation = QComboBox(); self.formulation.addItems(list(FORMULATIONS))
        self.formulation.setCurrentText("EV im")
        layout.addWidget(QLabel("Formulation"))
        layout.addWidget(self.formulation)

        self.dose = QDoubleSpinBox(); self.dose.setDecimals(2); self.dose.setRange(0.01, 1000)
        self.dose.setValue(5.0)
        self.dose.setSuffix(" mg")
        layout.addWidget(QLabel("Dose (mg)"))
        layout.addWidget(self.dose)

        self.interval = QDoubleSpinBox(); self.interval.setDecimals(1); self.interval.setRange(0.5, 60)
        self.interval.setValue(7.0)
        self.interval.setSuffix(" days")
        layout.addWidget(QLabel("Interval (days)"))
        layout.addWidget(self.interval)

        self.weeks = QSpinBox(); self.weeks.setRange(1, 104); self.weeks.setValue(settings.horizon_weeks)
        self.weeks.setSuffix(" weeks")
        layout.addWidget(QLabel("Duration (weeks)"))
        layout.addWidget(self.weeks)

        # --- Display ---
        layout.addWidget(QLabel("Display"))
        self.unit = QComboBox(); self.unit.addItems(["pg/mL", "pmol/L"])
        self.unit.setCurrentText(settings.display_unit)
        layout.addWidget(QLabel("Unit"))
        layout.addWidget(self.unit)

        self.steady_state = QCheckBox("Overlay steady state")
        layout.addWidget(self.steady_state)

        self.forecast = QCheckBox(f"Forecast {settings.clamped_forecast_weeks()} weeks")
        layout.addWidget(self.forecast)

        self.dt = QDoubleSpinBox(); self.dt.setDecimals(2)
        self.dt.setRange(0.01, 7.0); self.dt.setValue(settings.sample_step_days)
        self.dt.setSuffix(" days")
        layout.addWidget(QLabel("Sampling step (days)"))
        layout.addWidget(self.dt)

        go = QPushButton("Simulate"); layout.addWidget(go)
        go.clicked.connect(self._emit_request)

    def _emit_request(self):
        req = build_request(
            formulation=self.formulation.currentText(),
            amount_mg=float(self.dose.value()),
            interval_days=float(self.interval.value()),
            weeks=int(self.weeks.value()),
            dt_days=float(self.dt.value()),
            steady_state=self.steady_state.isChecked(),
            display_unit=self.unit.currentText(),
            forecast_weeks=settings.clamped_forecast_weeks() if self.forecast.isChecked() else 0,
        )
        self.simulateRequested.emit(req)
