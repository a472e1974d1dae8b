import re
from dataclasses import asdict, dataclass, replace
from typing import Dict, Optional

from riskdesk.core.exceptions import ValidationError
from riskdesk.core.models import DerivedMetrics, PriceLevels, SizingMetrics, TradeInputs
from riskdesk.services.calculator import RiskCalculator, to_decimal

# 與表單相同：只接受數字與一個小數點 (允許空字串)
NUMERIC_INPUT = re.compile(r"^[0-9]*\.?[0-9]*$")

SIZING_FIELDS = {"capital_inicial", "riesgo", "fluctuacion", "fee_compra", "fee_venta"}
LEVEL_FIELDS = {"orden_limit", "fluctuacion"}

@dataclass(frozen=True)
class PlanningInputs:
    """表單上的原始字串輸入。"""
    capital_inicial: str = "10000"
    riesgo: str = "2"
    fluctuacion: str = "4"
    fee_compra: str = "0.1"
    fee_venta: str = "0.1"
    orden_limit: str = "65000"

class RiskPlanner:
    """
    Live planning sheet.

    Keeps the raw inputs and recomputes only the metric group an input
    change invalidates: entry price changes touch the price levels only,
    capital / risk / fee changes touch the sizing only, fluctuation both.
    """

    def __init__(self, inputs: Optional[PlanningInputs] = None):
        self._inputs = PlanningInputs()
        self._sizing: Optional[SizingMetrics] = None
        self._levels: Optional[PriceLevels] = None
        self._sizing_dirty = True
        self._levels_dirty = True
        if inputs is not None:
            self.update(**asdict(inputs))

    @property
    def inputs(self) -> PlanningInputs:
        return self._inputs

    def update(self, **changes: str) -> PlanningInputs:
        unknown = set(changes) - SIZING_FIELDS - LEVEL_FIELDS
        if unknown:
            raise ValidationError(f"Unknown planning fields: {', '.join(sorted(unknown))}")

        cleaned: Dict[str, str] = {}
        for name, value in changes.items():
            value = "" if value is None else str(value).strip()
            if not NUMERIC_INPUT.match(value):
                raise ValidationError(f"{name} must be a plain positive number, got {value!r}")
            cleaned[name] = value

        changed = {k for k, v in cleaned.items() if getattr(self._inputs, k) != v}
        if not changed:
            return self._inputs

        self._inputs = replace(self._inputs, **cleaned)
        if changed & SIZING_FIELDS:
            self._sizing_dirty = True
        if changed & LEVEL_FIELDS:
            self._levels_dirty = True
        return self._inputs

    @property
    def sizing(self) -> Optional[SizingMetrics]:
        if self._sizing_dirty:
            i = self._inputs
            self._sizing = RiskCalculator.compute_sizing(
                i.capital_inicial, i.riesgo, i.fluctuacion, i.fee_compra, i.fee_venta
            )
            self._sizing_dirty = False
        return self._sizing

    @property
    def levels(self) -> Optional[PriceLevels]:
        if self._levels_dirty:
            self._levels = RiskCalculator.compute_price_levels(
                self._inputs.orden_limit, self._inputs.fluctuacion
            )
            self._levels_dirty = False
        return self._levels

    @property
    def metrics(self) -> Optional[DerivedMetrics]:
        """None while the inputs are incomplete."""
        sizing, levels = self.sizing, self.levels
        if sizing is None or levels is None:
            return None
        return DerivedMetrics(sizing=sizing, levels=levels)

    def trade_inputs(self, pair: str) -> TradeInputs:
        i = self._inputs
        return TradeInputs(
            pair=(pair or "").strip(),
            capital_inicial=to_decimal(i.capital_inicial),
            riesgo=to_decimal(i.riesgo),
            fluctuacion=to_decimal(i.fluctuacion),
            orden_limit=to_decimal(i.orden_limit),
        )
