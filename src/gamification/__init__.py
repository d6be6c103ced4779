"""
Gamification Module.

Provides:
- Completion settlement (XP award, track progress, streaks)
- Streak continuity with optional freeze protection
- Level math over the append-only XP ledger
"""

from src.gamification.settlement import SettlementEngine, SettlementResult
from src.gamification.stats import GamificationStats, get_stats, streaks_at_risk
from src.gamification.streaks import StreakOutcome, StreakService, apply_activity
from src.gamification.xp import calculate_task_xp, level_progress

__all__ = [
    "SettlementEngine",
    "SettlementResult",
    "StreakService",
    "StreakOutcome",
    "apply_activity",
    "calculate_task_xp",
    "level_progress",
    "GamificationStats",
    "get_stats",
    "streaks_at_risk",
]
