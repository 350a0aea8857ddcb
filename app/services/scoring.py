"""
Appraisal scoring and per-employee performance summaries.
"""
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from app.schemas.appraisal import Appraisal, AppraisalResponse
from app.schemas.employee import Employee
from app.schemas.summary import PerformanceSummary, ScoreBreakdown
from app.schemas.template import CategoryItem, QuestionType, Template

logger = logging.getLogger(__name__)

MAX_RATING = 5
STRENGTH_THRESHOLD = 75

STRENGTH_PHRASES = (
    "demonstrates exceptional",
    "shows strong",
    "excels in",
)

IMPROVEMENT_PHRASES = (
    "shows room for improvement in",
    "would benefit from enhancing",
    "has opportunities to strengthen",
)

# (minimum percentage, description), highest first
PERFORMANCE_LEVELS = (
    (90, "excellent performance"),
    (75, "strong performance"),
    (60, "satisfactory performance"),
    (0, "performance that requires attention"),
)


class ItemScore(BaseModel):
    question_id: str
    weight_score: float
    percentage_score: float


class ScoreResult(BaseModel):
    score: float = 0
    max_score: float = 0
    percentage: float = 0
    details: List[ItemScore] = Field(default_factory=list)


def template_items(template: Template) -> List[CategoryItem]:
    return template.ordered_items()


def _rating(value) -> Optional[float]:
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    return rating if 1 <= rating <= MAX_RATING else None


def _item_points(item: CategoryItem, response: Optional[AppraisalResponse]) -> Optional[float]:
    """Points earned on one item out of MAX_RATING * weight, or None when it does not count."""
    if response is None:
        return None
    if item.type == QuestionType.RATING_1_5:
        rating = _rating(response.value)
        return rating * item.weight if rating is not None else None
    if response.value is not None and str(response.value).strip():
        return MAX_RATING * item.weight
    return None


def calculate_score(responses: Iterable[AppraisalResponse], items: Sequence[CategoryItem]) -> ScoreResult:
    """
    Weighted score over the answered items.

    A rating earns rating * weight of a possible 5 * weight; an answered text or
    multiple-choice item earns the full 5 * weight. Unanswered or out-of-range
    items count toward neither score nor maximum.
    """
    by_question = {r.question_id: r for r in responses}
    score = 0.0
    max_score = 0.0
    details: List[ItemScore] = []
    for item in items:
        points = _item_points(item, by_question.get(item.id))
        if points is None:
            continue
        score += points
        max_score += MAX_RATING * item.weight
        details.append(
            ItemScore(question_id=item.id, weight_score=points, percentage_score=points / MAX_RATING)
        )
    return ScoreResult(
        score=round(score, 2),
        max_score=round(max_score, 2),
        percentage=round(score / max_score * 100, 2) if max_score else 0,
        details=details,
    )


def performance_level(percentage: float) -> str:
    for minimum, text in PERFORMANCE_LEVELS:
        if percentage >= minimum:
            return text
    return PERFORMANCE_LEVELS[-1][1]


def _item_label(category_name: str, item: CategoryItem) -> str:
    label = item.category_name or item.text[:50]
    return f"{category_name}: {label}" if category_name else label


def _short(text: str, limit: int = 60) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _item_percentages(appraisals: Sequence[Appraisal], templates: Dict[str, Template]) -> List[tuple]:
    """(label, percentage) per distinct item across appraisals, best first."""
    totals: "OrderedDict[str, List[float]]" = OrderedDict()
    for appraisal in appraisals:
        template = templates.get(appraisal.template_id)
        if template is None:
            continue
        by_question = {r.question_id: r for r in appraisal.responses}
        for category in sorted(template.categories, key=lambda c: c.order):
            for item in sorted(category.items, key=lambda i: i.order):
                points = _item_points(item, by_question.get(item.id))
                if points is None:
                    continue
                label = _item_label(category.category_name, item)
                entry = totals.setdefault(label, [0.0, 0.0])
                entry[0] += points
                entry[1] += MAX_RATING * item.weight
    result = [(label, total / maximum * 100) for label, (total, maximum) in totals.items() if maximum > 0]
    # Stable sort keeps first-seen order among ties
    result.sort(key=lambda pair: pair[1], reverse=True)
    return result


def build_performance_summary(
    employee: Employee,
    appraisals: Iterable[Appraisal],
    templates: Iterable[Template],
    period: str = "",
) -> PerformanceSummary:
    """Aggregate an employee's completed appraisals into a written summary."""
    completed = [a for a in appraisals if a.employee_id == employee.id and a.is_completed]
    if not completed:
        return PerformanceSummary(
            employee_id=employee.id,
            period=period,
            narrative="No completed appraisals available for this employee.",
        )

    template_map = {t.id: t for t in templates}
    total_score = sum(a.score for a in completed)
    max_score = sum(a.max_score for a in completed)
    percentage = round(total_score / max_score * 100) if max_score else 0

    items = _item_percentages(completed, template_map)
    strong = [pair for pair in items if pair[1] >= STRENGTH_THRESHOLD][:3]
    weak = [pair for pair in items if pair[1] < STRENGTH_THRESHOLD][-3:][::-1]
    strengths = [
        f"{STRENGTH_PHRASES[i % len(STRENGTH_PHRASES)]} {_short(label)} ({round(pct)}%)"
        for i, (label, pct) in enumerate(strong)
    ]
    improvements = [
        f"{IMPROVEMENT_PHRASES[i % len(IMPROVEMENT_PHRASES)]} {_short(label)} ({round(pct)}%)"
        for i, (label, pct) in enumerate(weak)
    ]

    narrative = (
        f"{employee.name} demonstrates {performance_level(percentage)}, achieving {percentage}% "
        f"of the total possible score across {len(completed)} appraisal(s)."
    )
    if strengths:
        narrative += f" Key strengths: {'; '.join(strengths[:2])}."
    if improvements:
        narrative += f" Areas for development: {'; '.join(improvements[:2])}."

    breakdown: "OrderedDict[str, ScoreBreakdown]" = OrderedDict()
    for appraisal in completed:
        template = template_map.get(appraisal.template_id)
        if template is None:
            continue
        entry = breakdown.get(template.type.value)
        if entry is None:
            breakdown[template.type.value] = ScoreBreakdown(
                type=template.type, score=appraisal.score, max_score=appraisal.max_score
            )
        else:
            entry.score += appraisal.score
            entry.max_score += appraisal.max_score

    logger.debug(f"Built summary for {employee.id}: {percentage}% over {len(completed)} appraisal(s)")
    return PerformanceSummary(
        employee_id=employee.id,
        period=period,
        total_score=round(total_score, 2),
        max_score=round(max_score, 2),
        percentage=percentage,
        strengths=strengths,
        improvements=improvements,
        narrative=narrative,
        breakdown=list(breakdown.values()),
    )
