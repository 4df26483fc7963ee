# src/flipwise/services/guardrails.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from flipwise.adapters.logging_utils import get_logger
from flipwise.domain.underwriting import ArvResult, CashScenario, MaoResult, RehabEstimate

logger = get_logger(__name__)


def collect_guardrail_flags(
    list_price: float,
    arv: ArvResult,
    rehab: RehabEstimate,
    mao: MaoResult,
    cash: CashScenario,
    listing_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Simple, high-leverage sanity checks on a finished analysis.

    Each flag:
        {
            "code": "ARV_ABOVE_CEILING",
            "severity": "warning" | "error",
            "message": "...human readable...",
            "context": {...raw numbers...},
        }

    These do *not* change viability; they just flag numbers a human should
    double-check.
    """
    flags: List[Dict[str, Any]] = []

    # ------------------------------------------------------------------
    # 1) ARV vs neighborhood ceiling
    # ------------------------------------------------------------------
    ceiling = arv.neighborhood_ceiling
    if ceiling is not None and arv.arv > ceiling:
        flags.append(
            {
                "code": "ARV_ABOVE_CEILING",
                "severity": "warning",
                "message": "ARV exceeds the neighborhood P90 closed price. Check comps.",
                "context": {"arv": arv.arv, "neighborhood_ceiling": ceiling},
            }
        )

    # ------------------------------------------------------------------
    # 2) Confidence
    # ------------------------------------------------------------------
    if arv.comp_count > 0 and arv.confidence in ("none", "low"):
        flags.append(
            {
                "code": "LOW_ARV_CONFIDENCE",
                "severity": "warning",
                "message": "ARV confidence is low; treat the estimate as indicative only.",
                "context": {"confidence_score": arv.confidence_score, "comp_count": arv.comp_count},
            }
        )

    # ------------------------------------------------------------------
    # 3) Rehab vs ARV
    # ------------------------------------------------------------------
    if arv.arv > 0 and rehab.total > arv.arv:
        flags.append(
            {
                "code": "REHAB_EXCEEDS_ARV",
                "severity": "error",
                "message": "Rehab budget exceeds ARV. Deal almost certainly does not pencil.",
                "context": {"arv": arv.arv, "rehab_total": rehab.total},
            }
        )

    # ------------------------------------------------------------------
    # 4) Profit & MAO
    # ------------------------------------------------------------------
    if arv.arv > 0 and cash.profit < 0:
        flags.append(
            {
                "code": "NEGATIVE_CASH_PROFIT",
                "severity": "warning",
                "message": "All-cash flip loses money at list price.",
                "context": {"cash_profit": cash.profit},
            }
        )

    if mao.adjusted > 0 and list_price > mao.adjusted:
        flags.append(
            {
                "code": "LIST_ABOVE_MAO",
                "severity": "warning",
                "message": "List price is above adjusted MAO. Negotiate or walk away.",
                "context": {"list_price": list_price, "mao_adjusted": mao.adjusted},
            }
        )

    if flags:
        logger.info("deal_guardrails_flags", extra={"context": {"listing_id": listing_id, "flags": flags}})

    return flags
