import logging
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from claimcheck.engine_config import RecommendationTables
from claimcheck.models import CheckResult, RawMatch

logger = logging.getLogger(__name__)

NO_VIOLATIONS_SUMMARY = "No potential restricted-claim violations were detected."

SEVERITY_LABELS: Dict[str, str] = {
    "high": "High risk - fix immediately",
    "medium": "Medium risk - revise the wording",
    "low": "Low risk - use with care",
}

_SEVERITY_ORDER = ("high", "medium", "low")


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_score: float = Field(..., ge=0.0, le=10.0)
    summary: str
    recommendations: List[str] = Field(default_factory=list)


def aggregate(matches: Sequence[RawMatch], tables: Optional[RecommendationTables] = None) -> RiskAssessment:
    tables = tables or RecommendationTables()
    risk_score = compute_risk_score(matches, tables.max_risk_score)
    return RiskAssessment(
        risk_score=risk_score,
        summary=generate_summary(matches, risk_score),
        recommendations=generate_recommendations(matches, tables),
    )


def compute_risk_score(matches: Sequence[RawMatch], max_score: float = 10.0) -> float:
    """Confidence-weighted mean of the matched rules' risk weights."""
    total = sum(m.rule.risk_weight * m.confidence for m in matches)
    score = total / max(1, len(matches))
    return max(0.0, min(max_score, score))


def severity_counts(matches: Sequence[RawMatch]) -> Dict[str, int]:
    counts = {severity: 0 for severity in _SEVERITY_ORDER}
    for m in matches:
        counts[m.rule.severity] += 1
    return counts


def generate_summary(matches: Sequence[RawMatch], risk_score: float) -> str:
    if not matches:
        return NO_VIOLATIONS_SUMMARY

    counts = severity_counts(matches)
    summary = f"Detected {len(matches)} potential restricted-claim violation(s)."
    for severity in _SEVERITY_ORDER:
        if counts[severity] > 0:
            summary += f" {severity.capitalize()}: {counts[severity]}"
    summary += f" (risk score: {risk_score:.1f}/10)"
    return summary


def generate_recommendations(matches: Sequence[RawMatch], tables: RecommendationTables) -> List[str]:
    recommendations: List[str] = []

    high = [m for m in matches if m.rule.severity == "high"]
    if high:
        recommendations.append("High-risk expressions detected. Revise them before publishing.")
        for m in high:
            recommendations.append(f'- "{m.matched_text}" -> {m.rule.description}')

    # first-seen order; categories without curated wording are skipped
    categories = list(dict.fromkeys(m.rule.category for m in matches))
    for category in categories:
        expressions = tables.appropriate_expressions.get(category)
        if not expressions:
            continue
        label = tables.category_labels.get(category, category)
        recommendations.append(f"Suggested wording for {label} claims:")
        for expr in expressions:
            recommendations.append(f'  * Consider phrasing such as "{expr}"')

    prefixes = tuple(tables.general_warning_prefixes)
    if prefixes and any(m.rule.id.startswith(prefixes) for m in matches):
        recommendations.append("General guidance:")
        for reminder in tables.general_reminders:
            recommendations.append(f"  - {reminder}")

    return recommendations


def detect_product_categories(text: str, tables: Optional[RecommendationTables] = None) -> List[str]:
    """Guess which regulated product categories a text talks about."""
    tables = tables or RecommendationTables()
    categories = [
        category
        for category, keywords in tables.product_category_keywords.items()
        if any(keyword in text for keyword in keywords)
    ]
    return categories or [tables.default_product_category]


def format_check_result(result: CheckResult) -> str:
    """Render a check result as a plain-text report suitable for chat."""
    if not result.has_violations:
        return NO_VIOLATIONS_SUMMARY

    lines = [result.summary, ""]
    for index, m in enumerate(result.matches, start=1):
        lines.append(f"{index}. [{SEVERITY_LABELS[m.rule.severity]}]")
        lines.append(f'   Matched: "{m.matched_text}"')
        lines.append(f"   Issue: {m.rule.description}")
        lines.append(f"   Reference: {m.rule.legal_reference}")
        lines.append(f"   Context: ...{m.context}...")
        lines.append("")

    if result.recommendations:
        lines.append("Recommendations:")
        lines.extend(result.recommendations)

    return "\n".join(lines).rstrip("\n") + "\n"
