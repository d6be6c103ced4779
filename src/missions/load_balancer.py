"""
Cognitive Load Balancer.

Builds the day's task list from candidate items without exceeding the
minute budget or the task cap, and mixes difficulties to avoid monotony:
1. At most one HARD item goes in first
2. MEDIUM items fill next, in order
3. EASY items fill what remains

Items that do not fit are skipped, not deferred; later, smaller items may
still be admitted.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from src.db.models import Difficulty
from src.missions.item_picker import CandidateItem


@dataclass
class LoadBudget:
    """Daily cognitive load limits."""
    max_minutes: int = 180
    max_tasks: int = 5


@dataclass
class BalancedLoad:
    """Admitted items and their totals."""
    items: list[CandidateItem] = field(default_factory=list)

    @property
    def total_minutes(self) -> int:
        return sum(i.estimated_minutes for i in self.items)

    @property
    def task_count(self) -> int:
        return len(self.items)

    def count_of(self, difficulty: Difficulty) -> int:
        return sum(1 for i in self.items if i.difficulty == difficulty)


class CognitiveLoadBalancer:
    """Greedy difficulty-ordered admission under a minute and task budget."""

    def __init__(self, budget: LoadBudget | None = None):
        self.budget = budget or LoadBudget()

    @staticmethod
    def partition(
        candidates: Sequence[CandidateItem],
    ) -> dict[Difficulty, list[CandidateItem]]:
        """Bucket candidates by difficulty, keeping their order."""
        buckets: dict[Difficulty, list[CandidateItem]] = {d: [] for d in Difficulty}
        for candidate in candidates:
            buckets[candidate.difficulty].append(candidate)
        return buckets

    def balance(
        self,
        candidates: Sequence[CandidateItem],
        budget: LoadBudget | None = None,
    ) -> BalancedLoad:
        """
        Admit candidates under the budget.

        Args:
            candidates: Items from the picker, in selection order
            budget: Override for the balancer's default budget

        Returns:
            BalancedLoad, possibly empty
        """
        budget = budget or self.budget
        buckets = self.partition(candidates)
        load = BalancedLoad()
        minutes = 0

        def admit(candidate: CandidateItem) -> bool:
            nonlocal minutes
            if minutes + candidate.estimated_minutes > budget.max_minutes:
                return False
            if len(load.items) >= budget.max_tasks:
                return False
            load.items.append(candidate)
            minutes += candidate.estimated_minutes
            return True

        # Only the first HARD candidate is considered
        if buckets[Difficulty.HARD]:
            admit(buckets[Difficulty.HARD][0])

        for candidate in buckets[Difficulty.MEDIUM]:
            admit(candidate)

        for candidate in buckets[Difficulty.EASY]:
            admit(candidate)

        logger.info(
            f"Balanced load: {load.task_count}/{len(candidates)} candidates admitted, "
            f"{load.total_minutes}/{budget.max_minutes} min "
            f"(hard={load.count_of(Difficulty.HARD)}, medium={load.count_of(Difficulty.MEDIUM)}, "
            f"easy={load.count_of(Difficulty.EASY)})"
        )
        return load
