"""
Typed filter for candidate question queries, plus difficulty presets.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from sqlalchemy import Select, select

from theory_backend.models import Question
from theory_backend.models.models import MAX_DIFFICULTY, MIN_DIFFICULTY

ALL_DIFFICULTIES: FrozenSet[int] = frozenset(range(MIN_DIFFICULTY, MAX_DIFFICULTY + 1))

# Labels offered on the custom test form
DIFFICULTY_PRESETS = {
    "easy": frozenset({1, 2}),
    "intermediate": frozenset({3, 4}),
    "hard": frozenset({4, 5}),
    "all": ALL_DIFFICULTIES,
}


def difficulties_for_preset(preset: str) -> FrozenSet[int]:
    """
    Resolve a preset label to its difficulty levels.

    Raises:
        ValueError: If the label is unknown
    """
    try:
        return DIFFICULTY_PRESETS[preset]
    except KeyError:
        raise ValueError(
            f"Unknown difficulty preset '{preset}'. "
            f"Expected one of: {', '.join(DIFFICULTY_PRESETS)}"
        ) from None


@dataclass(frozen=True)
class QuestionFilter:
    """
    Criteria for the candidate pool of a new test.

    ``topic_ids`` and ``difficulty_levels`` restrict the pool when set; an
    empty set matches nothing. ``excluded_ids`` removes specific questions.
    """

    topic_ids: Optional[FrozenSet[int]] = None
    difficulty_levels: Optional[FrozenSet[int]] = None
    excluded_ids: FrozenSet[int] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        topic_ids: Optional[Iterable[int]] = None,
        difficulty_levels: Optional[Iterable[int]] = None,
        excluded_ids: Optional[Iterable[int]] = None,
    ) -> "QuestionFilter":
        return cls(
            topic_ids=frozenset(topic_ids) if topic_ids is not None else None,
            difficulty_levels=(
                frozenset(difficulty_levels) if difficulty_levels is not None else None
            ),
            excluded_ids=frozenset(excluded_ids or ()),
        )

    def apply(self, query: Select) -> Select:
        """Add this filter's WHERE clauses to a select over Question."""
        if self.topic_ids is not None:
            query = query.where(Question.study_area_id.in_(sorted(self.topic_ids)))
        if self.difficulty_levels is not None:
            query = query.where(Question.difficulty.in_(sorted(self.difficulty_levels)))
        if self.excluded_ids:
            query = query.where(~Question.id.in_(sorted(self.excluded_ids)))
        return query

    def candidate_query(self) -> Select:
        """Select (id, extract_id) for every matching question, in id order."""
        return self.apply(select(Question.id, Question.extract_id)).order_by(
            Question.id
        )
