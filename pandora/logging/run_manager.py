"""
Run Manager for Project Pandora.

Each run gets its own directory under the output base:

    {base_dir}/{run_name}/
        config.json     - the configuration the run used
        metrics.csv     - one KPI row per generation
        summary.json    - final counts, written by finalize()

Only run outputs are written here; nothing in a run directory is ever
loaded back into an engine.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from pandora.core.config import SimConfig, save_config
from pandora.logging.csv_logger import CSVLogger


class RunManager:
    """
    Owns one run's output directory.

    Attributes:
        run_dir: Path to this run's output directory.
        csv_logger: CSVLogger writing metrics.csv.
    """

    CONFIG_FILE = "config.json"
    METRICS_FILE = "metrics.csv"
    SUMMARY_FILE = "summary.json"

    def __init__(
        self,
        config: SimConfig,
        base_dir: Optional[str | Path] = None,
        run_name: Optional[str] = None,
    ):
        """
        Create the run directory and save the config into it.

        Args:
            config: Simulation configuration (saved as config.json).
            base_dir: Base output directory. None = config.viz.output_dir.
            run_name: Subdirectory name. None = timestamp plus ruleset and seed.
        """
        if base_dir is None:
            base_dir = config.viz.output_dir
        if run_name is None:
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            run_name = f"{stamp}_{config.rules.ruleset}_s{config.world.seed}"

        self.run_dir = Path(base_dir) / run_name
        self.run_dir.mkdir(parents=True, exist_ok=True)

        save_config(config, self.config_path)
        self.csv_logger = CSVLogger(self.metrics_path)

    @property
    def config_path(self) -> Path:
        return self.run_dir / self.CONFIG_FILE

    @property
    def metrics_path(self) -> Path:
        return self.run_dir / self.METRICS_FILE

    @property
    def summary_path(self) -> Path:
        return self.run_dir / self.SUMMARY_FILE

    def log_generation(self, kpis: dict) -> None:
        """Append one generation's KPIs to metrics.csv."""
        self.csv_logger.log_row(kpis)

    def finalize(self, summary: Optional[dict] = None) -> None:
        """Write summary.json (if a summary is given)."""
        if summary is None:
            return
        with open(self.summary_path, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, ensure_ascii=False)

    @staticmethod
    def list_runs(base_dir: str | Path) -> list[str]:
        """Sorted names of run directories (those holding a config.json)."""
        base = Path(base_dir)
        if not base.exists():
            return []
        return sorted(
            d.name for d in base.iterdir()
            if d.is_dir() and (d / RunManager.CONFIG_FILE).exists()
        )

    def __repr__(self) -> str:
        return f"RunManager(run_dir='{self.run_dir}')"
