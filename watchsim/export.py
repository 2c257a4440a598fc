from __future__ import annotations
import io, json, secrets, zipfile
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from .events import NEW_MINUTE, NEW_STEP, SimEvent

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

class MinuteStepLog:
    """Per-minute step totals collected from the event stream.

    Steps are summed between NEW_MINUTE boundaries; each boundary closes one
    record stamped with the start of the minute that just ended.
    """

    def __init__(self):
        self.records: List[Dict[str, Any]] = []
        self._pending = 0

    def attach(self, source) -> "MinuteStepLog":
        source.add_event_listener(NEW_STEP, self.on_event)
        source.add_event_listener(NEW_MINUTE, self.on_event)
        return self

    def on_event(self, event: SimEvent) -> None:
        if event.type == NEW_STEP:
            self._pending += int(event.data.get("steps", 0))
        elif event.type == NEW_MINUTE:
            minute_start = event.simulated_time - pd.Timedelta(minutes=1)
            self.records.append({"timestamp": minute_start.strftime(TIMESTAMP_FORMAT), "steps": self._pending})
            self._pending = 0

    def clear(self) -> None:
        self.records = []
        self._pending = 0

    def __len__(self) -> int:
        return len(self.records)

    def total_steps(self) -> int:
        return sum(r["steps"] for r in self.records)

    def to_text_lines(self) -> str:
        """``<timestamp>, <steps>`` per line."""
        return "\n".join(f"{r['timestamp']}, {r['steps']}" for r in self.records)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.records, indent=indent)

    def to_frame(self) -> pd.DataFrame:
        df = pd.DataFrame(self.records, columns=["timestamp", "steps"])
        df["timestamp"] = pd.to_datetime(df["timestamp"], format=TIMESTAMP_FORMAT)
        return df

def default_export_filename(speed: int, now: Optional[datetime] = None) -> str:
    """YYYY-MM-DD_<speed>x_<ID>.csv, dated by wall clock."""
    now = now or datetime.now()
    return f"{now:%Y-%m-%d}_{speed}x_{secrets.token_hex(2).upper()}.csv"

def _df_to_bytes(df: pd.DataFrame, fmt: str) -> bytes:
    buf = io.BytesIO()
    if fmt == "csv":
        buf.write(df.to_csv(index=False).encode("utf-8"))
    elif fmt == "json":
        buf.write(df.to_json(orient="records", date_format="iso", indent=2).encode("utf-8"))
    else:
        raise ValueError("fmt must be 'csv' or 'json'")
    return buf.getvalue()

def bundle_run_to_zip(
    run_id: str,
    files: Dict[str, pd.DataFrame],
    metadata: Dict[str, Any],
    fmt: str = "csv",
    minute_log: Optional[MinuteStepLog] = None,
) -> bytes:
    zbuf = io.BytesIO()
    with zipfile.ZipFile(zbuf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        z.writestr(f"{run_id}/metadata.json", json.dumps(metadata, indent=2, default=str))
        if minute_log is not None:
            z.writestr(f"{run_id}/minute_steps.txt", minute_log.to_text_lines())
        for name, df in files.items():
            if name.endswith(".csv"):
                z.writestr(f"{run_id}/{name}", _df_to_bytes(df, "csv"))
            elif name.endswith(".json"):
                z.writestr(f"{run_id}/{name}", _df_to_bytes(df, "json"))
            else:
                z.writestr(f"{run_id}/{name}.{fmt}", _df_to_bytes(df, fmt))
    return zbuf.getvalue()

def hourly_distribution_frame(distribution: List[Dict[str, int]]) -> pd.DataFrame:
    df = pd.DataFrame(distribution, columns=["hour", "steps"])
    total = df["steps"].sum()
    df["share"] = df["steps"] / total if total > 0 else 0.0
    return df
