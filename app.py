import os
import socket

import numpy as np
import pandas as pd

from data_explorer.config.settings import load_settings
from data_explorer.core.filter_state import FilterState, slices_from_pairs
from data_explorer.core.modules import ModuleGroup, modules
from data_explorer.logging_config import configure_logging
from data_explorer.ui.dash_app import create_dash_app
from data_explorer.views import data_table_module, histogram_module

configure_logging()


def demo_data() -> dict:
    """Two small synthetic datasets: patients and their lab measurements."""
    rng = np.random.default_rng(42)
    n = 120
    patients = pd.DataFrame(
        {
            "patient_id": [f"P{i:03d}" for i in range(n)],
            "arm": rng.choice(["placebo", "low dose", "high dose"], size=n),
            "sex": rng.choice(["F", "M"], size=n),
            "age": rng.integers(21, 80, size=n),
        }
    )
    labs = pd.DataFrame(
        {
            "patient_id": np.repeat(patients["patient_id"].to_numpy(), 3),
            "visit": np.tile(["baseline", "week 4", "week 12"], n),
            "alt": rng.normal(30, 8, size=n * 3).round(1),
            "crp": rng.gamma(2.0, 2.5, size=n * 3).round(2),
        }
    )
    return {"patients": patients, "labs": labs}


settings = load_settings(os.getenv("DATA_EXPLORER_CONFIG_ROOT", "config"))

app = create_dash_app(
    modules=modules(
        data_table_module("Data", uses_reporter=True),
        ModuleGroup(
            "Distributions",
            (
                histogram_module("Age", dataname="patients", column="age", uses_reporter=True),
                histogram_module("ALT", dataname="labs", column="alt", nbins=30, uses_reporter=True),
            ),
        ),
    ),
    data=demo_data(),
    filter=FilterState(slices_from_pairs("labs", [("visit", ["baseline"])]), app_id="demo-trial"),
    header="Synthetic trial data. Filters apply to every tab.",
    settings=settings,
)
server = app.server


def find_free_port(start_port: int) -> int:
    """Finds an available port starting from start_port."""
    port = start_port
    while port < start_port + 100:  # Try up to 100 ports
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            if s.connect_ex(('localhost', port)) != 0:
                return port
        port += 1
    return start_port


if __name__ == "__main__":
    final_port = find_free_port(settings.port)

    if final_port != settings.port:
        print(f"Warning: Port {settings.port} was taken. Starting on {final_port}")

    app.run(host="0.0.0.0", port=final_port, debug=settings.debug)
