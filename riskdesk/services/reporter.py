import pandas as pd
from typing import Iterable

from riskdesk.config.logging import logger
from riskdesk.core.exceptions import ValidationError
from riskdesk.core.models import Trade
from riskdesk.infrastructure.mapper import LedgerMapper

SUPPORTED_FORMATS = ("csv", "excel")

class ReporterService:
    """
    Service for exporting the trade ledger and aggregating realized P&L.
    """

    @staticmethod
    def to_frame(trades: Iterable[Trade]) -> pd.DataFrame:
        records = [LedgerMapper.trade_to_record(t) for t in trades]
        df = pd.DataFrame(records)
        if df.empty:
            return df

        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
        # Stored as decimal strings; numbers are easier to work with in a sheet
        numeric = [c for c in df.columns if c not in ("pair", "relacion", "timestamp", "status",
                                                      "closingProfitLevel", "closedAt")]
        df[numeric] = df[numeric].apply(pd.to_numeric, errors="coerce")
        return df.sort_values("timestamp", ascending=False).reset_index(drop=True)

    @classmethod
    def monthly_pnl(cls, trades: Iterable[Trade]) -> pd.Series:
        """Realized net P&L grouped by the month the trade was closed."""
        closed = [t for t in trades if t.is_closed]
        if not closed:
            return pd.Series(dtype=float, name="ganancia")

        df = pd.DataFrame({
            "closed_at": [t.closing.closed_at or t.timestamp for t in closed],
            "ganancia": [float(t.closing.ganancia) for t in closed],
        })
        df["closed_at"] = pd.to_datetime(df["closed_at"], utc=True)
        df.set_index("closed_at", inplace=True)

        # 'ME' is the month-end frequency string
        return df["ganancia"].resample("ME").sum()

    @classmethod
    def export_ledger(cls, trades: Iterable[Trade], file_path: str, output_format: str = "csv") -> str:
        """
        Writes the ledger to `file_path`.

        Args:
            output_format: The desired output format ('csv' or 'excel').
        """
        if output_format not in SUPPORTED_FORMATS:
            raise ValidationError(f"Unsupported report format: {output_format}")

        df = cls.to_frame(trades)
        if df.empty:
            logger.warning("Ledger is empty, exporting header-less file.")

        if output_format == "csv":
            df.to_csv(file_path, index=False)
        else:
            # Excel cannot store timezone-aware datetimes
            if "timestamp" in df.columns:
                df["timestamp"] = df["timestamp"].dt.tz_localize(None)
            df.to_excel(file_path, sheet_name="Trades", index=False)

        logger.info(f"Successfully saved ledger export to {file_path}")
        return file_path
