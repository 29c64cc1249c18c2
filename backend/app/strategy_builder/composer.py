"""
PURPOSE: Compose a complete draft StrategyResult from a natural language description.

Runs the field extractors, derives the dependent parameters (quote token,
order size, risk level) and renders the artifacts shown to the user: summary,
confirmation layout, contract call descriptor, simulated backtest note,
deployment warning and follow-up suggestions.

Composition cannot fail. The result is advisory only; nothing here is checked
against live market data.

CALLED BY:
    - services/strategy_service.py (compose)
    - api/routes_strategies.py (parse endpoint)
"""

import math
import random
from decimal import Decimal
from typing import Optional

from app.config.constants import (
    CONTRACT_METHOD,
    CONTRACT_NAME,
    DEPLOYMENT_WARNING,
    FOLLOW_UP_SUGGESTIONS,
    HIGH_RISK_MIN_RANGE_PCT,
    LOW_RISK_MAX_RANGE_PCT,
    STRATEGY_NAMES,
    UI_PAGE_TITLE,
    RiskLevel,
    StrategyType,
)
from app.schemas.strategy import (
    SmartContractCall,
    StrategyParameters,
    StrategyResult,
    StrategyUIAction,
    StrategyUILayout,
    StrategyUISection,
)
from app.strategy_builder.extractors import ExtractedFields, PercentageTriggers, extract_all
from app.utils.logger import get_logger

logger = get_logger("strategy_builder.composer")


def js_round(value: float) -> int:
    """Round half up, the way the stored strategies were always sized."""
    return math.floor(value + 0.5)


def format_number(value: float) -> str:
    """
    Render a number the way the stored summaries always showed it.

    Shortest round-trip digits; plain notation for magnitudes from 1e-6 up
    to below 1e21, scientific ("1e+21", "1.5e-7") outside that window.
    1000.0 renders as "1000" and 15.5 as "15.5".
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    parsed = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in parsed.digits)
    k = len(digits)
    n = parsed.exponent + k  # position of the decimal point

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + digits

    exponent = n - 1
    mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
    return f"{sign}{mantissa}e{'+' if exponent >= 0 else '-'}{abs(exponent)}"


def classify_risk(lower_bound: float, upper_bound: float) -> RiskLevel:
    """
    PURPOSE: Bucket a price range into a risk level by its width.

    range_pct = (upper - lower) / lower * 100; below 20 is low, above 50 is
    high, anything else medium. This is a volatility proxy, not a risk model.

    Args:
        lower_bound: Lower price bound, must be positive.
        upper_bound: Upper price bound.

    Returns:
        RiskLevel: low, medium or high.
    """
    range_pct = (upper_bound - lower_bound) / lower_bound * 100
    if range_pct < LOW_RISK_MAX_RANGE_PCT:
        return RiskLevel.LOW
    if range_pct > HIGH_RISK_MIN_RANGE_PCT:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def _trigger_clause(triggers: PercentageTriggers) -> str:
    parts = []
    if triggers.buy_drop_pct:
        parts.append(f"Buy when price drops {format_number(triggers.buy_drop_pct)}%")
    if triggers.sell_rise_pct:
        parts.append(f"Sell when price rises {format_number(triggers.sell_rise_pct)}%")
    return ", ".join(parts)


class StrategyComposer:
    """
    PURPOSE: Turns free-form text into a draft StrategyResult.

    The simulated backtest figures come from a random.Random seeded with the
    input text unless a generator is injected, so the same description always
    composes to the same result.

    CALLED BY: StrategyService.compose, api/routes_strategies.py
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng

    def compose(self, text: str) -> StrategyResult:
        """
        Build a draft strategy record from a description.

        Args:
            text: e.g. "Grid on BTC/USDT from $20 to $22, 12 grids, 500 USDT"

        Returns:
            StrategyResult with status and id unset.
        """
        fields = extract_all(text)
        parameters = self._build_parameters(fields)

        result = StrategyResult(
            parameters=parameters,
            summary=self._build_summary(parameters, fields.triggers),
            ui_layout=self._build_ui_layout(parameters),
            contract_call=self._build_contract_call(parameters),
            backtesting_feedback=self._build_backtest_feedback(parameters, text),
            deployment_warning=DEPLOYMENT_WARNING,
            follow_up_suggestions=list(FOLLOW_UP_SUGGESTIONS),
        )

        logger.info(
            "strategy_composed",
            input_length=len(text),
            strategy_type=parameters.strategy_type.value,
            pair=parameters.pair,
            total_investment=parameters.total_investment,
            risk_level=parameters.risk_level.value,
        )
        return result

    # ------------------------------------------------------------------ #
    #  Private helpers
    # ------------------------------------------------------------------ #

    def _build_parameters(self, fields: ExtractedFields) -> StrategyParameters:
        amount_per_order = max(1, js_round(fields.total_investment / fields.grid_count))
        return StrategyParameters(
            strategy_name=STRATEGY_NAMES[fields.strategy_type],
            strategy_type=fields.strategy_type,
            pair=fields.pair,
            lower_bound=fields.lower_bound,
            upper_bound=fields.upper_bound,
            grid_count=fields.grid_count,
            total_investment=fields.total_investment,
            amount_per_order=amount_per_order,
            token_invested=fields.pair.split("/")[1],
            duration_days=fields.duration_days,
            risk_level=classify_risk(fields.lower_bound, fields.upper_bound),
            deploy_to_chain=True,
        )

    def _build_summary(self, p: StrategyParameters, triggers: PercentageTriggers) -> str:
        token = p.token_invested
        total = format_number(p.total_investment)
        per_order = format_number(p.amount_per_order)

        if p.strategy_type == StrategyType.GRID:
            summary = (
                f"You're creating a grid trading strategy for {p.pair}. It will split the "
                f"{format_number(p.lower_bound)}-{format_number(p.upper_bound)} range into "
                f"{p.grid_count} equal price levels. When the price drops or rises by one level, "
                f"the strategy will automatically place a buy or sell order of {per_order} {token}. "
                f"The strategy will manage a total of {total} {token} over {p.duration_days} days."
            )
            if triggers.any:
                summary += f" Additional triggers: {_trigger_clause(triggers)}."
            return summary

        if p.strategy_type == StrategyType.DCA:
            return (
                f"You're creating a Dollar-Cost Averaging strategy for {p.pair}. It will "
                f"automatically invest {per_order} {token} at regular intervals over "
                f"{p.duration_days} days, for a total investment of {total} {token}."
            )

        summary = (
            f"You're creating a {p.strategy_name} for {p.pair} with a total investment of "
            f"{total} {token} over {p.duration_days} days."
        )
        if triggers.any:
            summary += f" Triggers: {_trigger_clause(triggers)}."
        return summary

    def _build_ui_layout(self, p: StrategyParameters) -> StrategyUILayout:
        token = p.token_invested
        sections = [
            ("Pair", p.pair),
            ("Type", p.strategy_name),
            ("Range", f"${format_number(p.lower_bound)} - ${format_number(p.upper_bound)}"),
            ("Grids", str(p.grid_count)),
            ("Amount Per Order", f"{format_number(p.amount_per_order)} {token}"),
            ("Total Investment", f"{format_number(p.total_investment)} {token}"),
            ("Duration", f"{p.duration_days} days"),
            ("Risk Level", p.risk_level.value.capitalize()),
        ]
        return StrategyUILayout(
            page_title=UI_PAGE_TITLE,
            sections=[StrategyUISection(title=t, value=v) for t, v in sections],
            actions=[
                StrategyUIAction(label="Deploy Strategy", action="send_transaction"),
                StrategyUIAction(label="Edit", action="go_back"),
            ],
        )

    def _build_contract_call(self, p: StrategyParameters) -> SmartContractCall:
        return SmartContractCall(
            contract_name=CONTRACT_NAME,
            method=CONTRACT_METHOD,
            params={
                "pair": p.pair,
                "type": p.strategy_type.value,
                "low": p.lower_bound,
                "high": p.upper_bound,
                "grids": p.grid_count,
                "totalCapital": p.total_investment,
                "orderSize": p.amount_per_order,
                "duration": p.duration_days,
            },
        )

    def _build_backtest_feedback(self, p: StrategyParameters, text: str) -> str:
        rng = self._rng or random.Random(text)
        trades = math.floor(rng.random() * 40 + 20)
        roi = rng.random() * 10 + 5
        return (
            f"Simulated over the past 30 days, {p.pair} ranged between "
            f"${p.lower_bound * 1.08:.1f} and ${p.upper_bound * 0.99:.1f}. "
            f"This {p.strategy_type.value} strategy would have executed {trades} trades "
            f"and yielded an estimated ROI of +{roi:.1f}%. "
            f"Note: Past performance is not indicative of future results."
        )


def compose_strategy(text: str, rng: Optional[random.Random] = None) -> StrategyResult:
    """Shortcut for StrategyComposer(rng).compose(text)."""
    return StrategyComposer(rng).compose(text)
