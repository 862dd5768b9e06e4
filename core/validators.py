# PATH: core/validators.py
"""
Validators for scoring output.

CONTRACTS:
- parse_opportunity_payload(): wire JSON (camelCase) -> list[Opportunity],
  raises AnalysisSchemaViolation on the FIRST problem (all-or-nothing)
- validate_opportunity(): structural check of an already-built record,
  raises AnalysisSchemaViolation

WIRE SCHEMA (one array element):
    id, tokenSymbol, buyAt, sellAt            str
    buyPrice, sellPrice                       number > 0
    amount, spreadPercentage, grossProfit     number
    aiAnalysis:
        confidenceScore                       number 0..100
        estimatedGasFees, netProfitPotential  number
        reasoning, executionStrategy          str
        riskLevel                             Low | Medium | High
        actionRecommendation                  SNIPE | HOLD | IGNORE
        processingTimeMs                      number (optional)
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from core.constants import Action, Mode, RiskLevel
from core.exceptions import AnalysisSchemaViolation
from core.models import Opportunity, Verdict


REQUIRED_OPPORTUNITY_FIELDS = (
    "id",
    "tokenSymbol",
    "buyAt",
    "sellAt",
    "buyPrice",
    "sellPrice",
    "amount",
    "spreadPercentage",
    "grossProfit",
    "aiAnalysis",
)

REQUIRED_ANALYSIS_FIELDS = (
    "confidenceScore",
    "estimatedGasFees",
    "netProfitPotential",
    "reasoning",
    "executionStrategy",
    "riskLevel",
    "actionRecommendation",
)


def _require_str(record: Dict[str, Any], key: str, index: int) -> str:
    value = record[key]
    if not isinstance(value, str) or not value.strip():
        raise AnalysisSchemaViolation(
            f"Field '{key}' must be a non-empty string",
            details={"index": index, "value": repr(value)},
        )
    return value


def _require_number(record: Dict[str, Any], key: str, index: int) -> Decimal:
    value = record[key]
    # bool is an int subclass; JSON true/false is never a valid amount
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise AnalysisSchemaViolation(
            f"Field '{key}' must be numeric",
            details={"index": index, "value": repr(value)},
        )
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise AnalysisSchemaViolation(
            f"Field '{key}' is not a number",
            details={"index": index, "value": repr(value)},
        )
    if not number.is_finite():
        raise AnalysisSchemaViolation(
            f"Field '{key}' must be finite",
            details={"index": index, "value": repr(value)},
        )
    return number


def _require_fields(record: Any, fields: tuple, index: int, where: str) -> Dict[str, Any]:
    if not isinstance(record, dict):
        raise AnalysisSchemaViolation(
            f"{where} must be an object",
            details={"index": index, "type": type(record).__name__},
        )
    missing = [f for f in fields if f not in record or record[f] is None]
    if missing:
        raise AnalysisSchemaViolation(
            f"{where} is missing required fields: {', '.join(missing)}",
            details={"index": index, "missing": missing},
        )
    return record


def parse_opportunity_record(record: Any, mode: Mode, index: int = 0) -> Opportunity:
    """
    Parse one wire record into an Opportunity.

    Raises:
        AnalysisSchemaViolation: on any missing field, wrong type or enum value
    """
    record = _require_fields(record, REQUIRED_OPPORTUNITY_FIELDS, index, "Opportunity")
    analysis = _require_fields(record["aiAnalysis"], REQUIRED_ANALYSIS_FIELDS, index, "aiAnalysis")

    try:
        risk = RiskLevel(analysis["riskLevel"])
    except ValueError:
        raise AnalysisSchemaViolation(
            f"Unknown riskLevel: {analysis['riskLevel']!r}",
            details={"index": index},
        )
    try:
        action = Action(analysis["actionRecommendation"])
    except ValueError:
        raise AnalysisSchemaViolation(
            f"Unknown actionRecommendation: {analysis['actionRecommendation']!r}",
            details={"index": index},
        )

    processing_ms = 0
    if analysis.get("processingTimeMs") is not None:
        processing_ms = int(_require_number(analysis, "processingTimeMs", index))

    confidence = _require_number(analysis, "confidenceScore", index)

    verdict = Verdict(
        confidence=int(confidence.to_integral_value()),
        estimated_cost=_require_number(analysis, "estimatedGasFees", index),
        net_profit=_require_number(analysis, "netProfitPotential", index),
        reasoning=_require_str(analysis, "reasoning", index),
        execution_strategy=_require_str(analysis, "executionStrategy", index),
        risk_level=risk,
        action=action,
        processing_time_ms=processing_ms,
    )

    opportunity = Opportunity(
        id=_require_str(record, "id", index),
        token=_require_str(record, "tokenSymbol", index),
        buy_venue=_require_str(record, "buyAt", index),
        sell_venue=_require_str(record, "sellAt", index),
        buy_price=_require_number(record, "buyPrice", index),
        sell_price=_require_number(record, "sellPrice", index),
        amount=_require_number(record, "amount", index),
        spread_pct=_require_number(record, "spreadPercentage", index),
        gross_profit=_require_number(record, "grossProfit", index),
        verdict=verdict,
        mode=mode,
    )
    validate_opportunity(opportunity, index)
    return opportunity


def parse_opportunity_payload(payload: Any, mode: Mode) -> List[Opportunity]:
    """
    Parse a full analyzer response.

    The payload must be a JSON array; an empty array is valid.

    Raises:
        AnalysisSchemaViolation: payload is not an array or any element is invalid
    """
    if not isinstance(payload, list):
        raise AnalysisSchemaViolation(
            "Analyzer response must be a JSON array",
            details={"type": type(payload).__name__},
        )
    return [parse_opportunity_record(record, mode, i) for i, record in enumerate(payload)]


def validate_opportunity(opportunity: Any, index: int = 0) -> None:
    """
    Structural validation of a built Opportunity.

    Business filtering (allow-list, threshold) is NOT done here; see
    strategy.detector.

    Raises:
        AnalysisSchemaViolation: record breaks the Opportunity contract
    """
    if not isinstance(opportunity, Opportunity):
        raise AnalysisSchemaViolation(
            "Analyzer returned a non-Opportunity record",
            details={"index": index, "type": type(opportunity).__name__},
        )
    verdict = opportunity.verdict
    if not isinstance(verdict, Verdict):
        raise AnalysisSchemaViolation("Opportunity has no verdict", details={"index": index})
    if not 0 <= verdict.confidence <= 100:
        raise AnalysisSchemaViolation(
            f"confidence out of range: {verdict.confidence}",
            details={"index": index, "id": opportunity.id},
        )
    if opportunity.buy_price <= 0 or opportunity.sell_price <= 0:
        raise AnalysisSchemaViolation(
            "prices must be positive",
            details={"index": index, "id": opportunity.id},
        )
    if opportunity.amount <= 0:
        raise AnalysisSchemaViolation(
            "amount must be positive",
            details={"index": index, "id": opportunity.id},
        )
    if not isinstance(verdict.risk_level, RiskLevel) or not isinstance(verdict.action, Action):
        raise AnalysisSchemaViolation(
            "verdict enums are invalid",
            details={"index": index, "id": opportunity.id},
        )
