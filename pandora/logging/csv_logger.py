"""
CSV Logger for Project Pandora.

Appends one row per generation to a metrics CSV. The header is written
lazily with the first row, so a run that dies before its first generation
leaves no half-formed file behind.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from pandora.simulation.metrics import MetricsCollector


class CSVLogger:
    """
    Logs generation KPIs to a CSV file.

    Usage:
        logger = CSVLogger("runs/20260101_120000/metrics.csv")
        logger.log_row(kpis)              # append one generation
        df = logger.read_frame()          # load everything back

    Attributes:
        file_path: Path to the CSV file.
        columns: Ordered column names (defaults to MetricsCollector.kpi_names()).
        rows_written: Rows appended through this logger.
    """

    def __init__(self, file_path: str | Path, columns: Optional[list[str]] = None):
        self.file_path = Path(file_path)
        self.columns = columns or MetricsCollector.kpi_names()
        self.rows_written = 0
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def has_header(self) -> bool:
        return self.file_path.exists() and self.file_path.stat().st_size > 0

    def _writer(self, handle) -> csv.DictWriter:
        return csv.DictWriter(handle, fieldnames=self.columns, extrasaction="ignore")

    def log_row(self, kpis: dict) -> None:
        """Append a single generation's KPIs."""
        write_header = not self.has_header
        with open(self.file_path, "a", newline="", encoding="utf-8") as f:
            writer = self._writer(f)
            if write_header:
                writer.writeheader()
            writer.writerow(kpis)
        self.rows_written += 1

    def log_all(self, rows: Iterable[dict]) -> None:
        """Rewrite the file from scratch with the given rows."""
        count = 0
        with open(self.file_path, "w", newline="", encoding="utf-8") as f:
            writer = self._writer(f)
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
                count += 1
        self.rows_written = count

    def read_frame(self) -> pd.DataFrame:
        """Load the CSV as a DataFrame (empty if nothing was logged)."""
        if not self.has_header:
            return pd.DataFrame(columns=self.columns)
        return pd.read_csv(self.file_path)
