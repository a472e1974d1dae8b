from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
from riskdesk.core.models import (
    DerivedMetrics,
    PriceLevels,
    ProfitLevel,
    SizingMetrics,
    Trade,
    TradeClosing,
    TradeInputs,
    TradeStatus,
)

def _dec(raw: Dict[str, Any], key: str) -> Optional[Decimal]:
    value = raw.get(key)
    if value is None or value == "":
        return None
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"field {key!r} is not a decimal: {value!r}")
    # NaN / Infinity 會讓之後的比較拋出 InvalidOperation
    if not parsed.is_finite():
        raise ValueError(f"field {key!r} is not finite: {value!r}")
    return parsed

def _required(raw: Dict[str, Any], key: str) -> Decimal:
    value = _dec(raw, key)
    if value is None:
        raise KeyError(key)
    return value

def _parse_dt(value: str) -> datetime:
    # dashboard 寫入的是 JS toISOString() 格式 (結尾 Z)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

def _str(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None

class LedgerMapper:
    """
    負責 Trade 物件與本機儲存紀錄 (camelCase dict) 之間的轉換。
    欄位名稱沿用 dashboard 的 localStorage 格式。
    """

    @staticmethod
    def trade_to_record(trade: Trade) -> Dict[str, Any]:
        sizing = trade.metrics.sizing
        levels = trade.metrics.levels
        record = {
            "pair": trade.inputs.pair,
            "capitalInicial": str(trade.inputs.capital_inicial),
            "riesgo": str(trade.inputs.riesgo),
            "fluctuacion": str(trade.inputs.fluctuacion),
            "ordenLimit": str(trade.inputs.orden_limit),
            "inversion": str(sizing.inversion),
            "udr": str(sizing.udr),
            "udrAFavor": str(sizing.udr_a_favor),
            "relacion": sizing.relacion,
            "profitOB1": str(sizing.profit_ob1),
            "profitOB2": str(sizing.profit_ob2),
            "profitOB3": str(sizing.profit_ob3),
            "totalOperaciones": _str(sizing.total_operaciones),
            "sltProfit": _str(sizing.slt_profit),
            "capitalFinal": _str(sizing.capital_final),
            "liquidez": _str(sizing.liquidez),
            "delta": _str(sizing.delta),
            "trailingStop": _str(sizing.trailing_stop),
            "stopLoss": str(levels.stop_loss),
            "profit1": str(levels.profit1),
            "profit2": str(levels.profit2),
            "profit3": str(levels.profit3),
            "stopLossTrailing": _str(levels.stop_loss_trailing),
            "timestamp": trade.timestamp.isoformat(),
            "status": trade.status.value,
        }
        if trade.closing:
            record.update({
                "closingProfitLevel": trade.closing.profit_level.value,
                "ganancia": str(trade.closing.ganancia),
                "comision": str(trade.closing.comision),
                "udrGanados": trade.closing.udr_ganados,
                "closedAt": trade.closing.closed_at.isoformat() if trade.closing.closed_at else None,
            })
        return record

    @staticmethod
    def record_to_trade(raw: Dict[str, Any]) -> Trade:
        """
        將儲存紀錄轉回 Trade。
        缺少核心欄位時拋出 KeyError/ValueError，缺少較新的選填欄位則視為 None。
        """
        inputs = TradeInputs(
            pair=str(raw["pair"]),
            capital_inicial=_required(raw, "capitalInicial"),
            riesgo=_required(raw, "riesgo"),
            fluctuacion=_required(raw, "fluctuacion"),
            orden_limit=_required(raw, "ordenLimit"),
        )
        sizing = SizingMetrics(
            inversion=_required(raw, "inversion"),
            udr=_required(raw, "udr"),
            udr_a_favor=_required(raw, "udrAFavor"),
            relacion=str(raw.get("relacion") or ""),
            profit_ob1=_required(raw, "profitOB1"),
            profit_ob2=_required(raw, "profitOB2"),
            profit_ob3=_required(raw, "profitOB3"),
            total_operaciones=_dec(raw, "totalOperaciones"),
            slt_profit=_dec(raw, "sltProfit"),
            capital_final=_dec(raw, "capitalFinal"),
            liquidez=_dec(raw, "liquidez"),
            delta=_dec(raw, "delta"),
            trailing_stop=_dec(raw, "trailingStop"),
        )
        levels = PriceLevels(
            stop_loss=_required(raw, "stopLoss"),
            profit1=_required(raw, "profit1"),
            profit2=_required(raw, "profit2"),
            profit3=_required(raw, "profit3"),
            stop_loss_trailing=_dec(raw, "stopLossTrailing"),
        )

        closing = None
        if raw.get("closingProfitLevel"):
            closed_at = raw.get("closedAt")
            closing = TradeClosing(
                profit_level=ProfitLevel(raw["closingProfitLevel"]),
                ganancia=_required(raw, "ganancia"),
                comision=_required(raw, "comision"),
                udr_ganados=int(raw["udrGanados"]),
                closed_at=_parse_dt(closed_at) if closed_at else None,
            )

        # 舊紀錄沒有 status：有平倉欄位即視為已平倉
        status = raw.get("status")
        if status is None:
            status = TradeStatus.CLOSED if closing else TradeStatus.OPEN

        return Trade(
            inputs=inputs,
            metrics=DerivedMetrics(sizing=sizing, levels=levels),
            timestamp=_parse_dt(raw["timestamp"]),
            status=TradeStatus(status),
            closing=closing,
        )
