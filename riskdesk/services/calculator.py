from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from riskdesk.core.models import (
    DerivedMetrics,
    PriceLevels,
    ProfitLevel,
    SizingMetrics,
    TradeClosing,
)

Number = Union[Decimal, int, float, str]

HUNDRED = Decimal("100")
DEFAULT_COMMISSION_RATE = Decimal("0.001")


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """Parse a user-supplied number. Returns None for blanks, garbage and non-finite values."""
    if value is None:
        return None
    if isinstance(value, float):
        value = repr(value)
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def _positive(value: Optional[Number]) -> Optional[Decimal]:
    parsed = to_decimal(value)
    if parsed is None or parsed <= 0:
        return None
    return parsed


def plain(value: Decimal) -> str:
    """Render a decimal without exponent or trailing zeros (4.00 -> "4")."""
    return format(value.normalize(), "f")


class RiskCalculator:
    """
    Risk-sizing formulas of the UDR system.

    Sizing (capital based) and price levels (entry based) are independent
    groups: changing the entry price never touches sizing and vice versa.
    Degenerate inputs give None instead of raising; callers render "N/A".
    """

    @staticmethod
    def compute_sizing(
        capital: Number,
        riesgo: Number,
        fluctuacion: Number,
        fee_compra: Number = 0,
        fee_venta: Number = 0,
    ) -> Optional[SizingMetrics]:
        capital = _positive(capital)
        riesgo = _positive(riesgo)
        fluctuacion = _positive(fluctuacion)
        if capital is None or riesgo is None or fluctuacion is None:
            return None

        fee_compra = to_decimal(fee_compra) or Decimal(0)
        fee_venta = to_decimal(fee_venta) or Decimal(0)

        inversion = capital / (fluctuacion / riesgo)
        udr = capital * (riesgo / HUNDRED)
        udr_a_favor = HUNDRED / riesgo
        total_operaciones = capital / inversion if inversion > 0 else Decimal(0)

        # Profit container: value of the position at each target, not the delta
        step = inversion * (fluctuacion / HUNDRED)
        fee_amount = inversion * ((fee_compra + fee_venta) / HUNDRED)
        capital_final = capital + step - fee_amount

        return SizingMetrics(
            inversion=inversion,
            udr=udr,
            udr_a_favor=udr_a_favor,
            relacion=f"{plain(fluctuacion)}:{plain(riesgo)}",
            profit_ob1=inversion + step,
            profit_ob2=inversion + 2 * step,
            profit_ob3=inversion + 3 * step,
            total_operaciones=total_operaciones,
            slt_profit=inversion - step,
            capital_final=capital_final,
            liquidez=capital_final,
            delta=fluctuacion / 2,
            trailing_stop=fluctuacion,
        )

    @staticmethod
    def compute_price_levels(orden_limit: Number, fluctuacion: Number) -> Optional[PriceLevels]:
        orden_limit = _positive(orden_limit)
        fluctuacion = _positive(fluctuacion)
        if orden_limit is None or fluctuacion is None:
            return None

        step = orden_limit * (fluctuacion / HUNDRED)
        stop_loss = orden_limit - step
        return PriceLevels(
            stop_loss=stop_loss,
            profit1=orden_limit + step,
            profit2=orden_limit + 2 * step,
            profit3=orden_limit + 3 * step,
            stop_loss_trailing=stop_loss,
        )

    @classmethod
    def compute(
        cls,
        capital: Number,
        riesgo: Number,
        fluctuacion: Number,
        orden_limit: Number,
    ) -> Optional[DerivedMetrics]:
        sizing = cls.compute_sizing(capital, riesgo, fluctuacion)
        levels = cls.compute_price_levels(orden_limit, fluctuacion)
        if sizing is None or levels is None:
            return None
        return DerivedMetrics(sizing=sizing, levels=levels)

    @staticmethod
    def settle(
        sizing: SizingMetrics,
        level: ProfitLevel,
        commission_rate: Decimal = DEFAULT_COMMISSION_RATE,
        closed_at: Optional[datetime] = None,
    ) -> TradeClosing:
        """
        Realized result of closing a position at `level`.

        OB levels realize the stored profit container minus the investment;
        SL loses exactly one risk unit. Commission is charged on the opening
        notional and on the closing notional.
        """
        level = ProfitLevel(level)
        if level is ProfitLevel.SL:
            raw = -sizing.udr
        else:
            raw = sizing.profit_ob(level) - sizing.inversion

        open_fee = sizing.inversion * commission_rate
        close_fee = (sizing.inversion + raw) * commission_rate
        comision = open_fee + close_fee

        return TradeClosing(
            profit_level=level,
            ganancia=raw - comision,
            comision=comision,
            udr_ganados=level.multiple,
            closed_at=closed_at,
        )
