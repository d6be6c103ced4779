"""
Mission Engine.

Provides the daily assignment pipeline:
- Track rotation (which tracks get attention today)
- Item picking (next unit of work per track)
- Cognitive load balancing (minute/task budget with a difficulty mix)
- Mission assembly and the daily batch trigger
"""

from src.missions.assembler import AssemblyResult, MissionAssembler
from src.missions.batch import BatchStats, run_daily_assembly
from src.missions.expiry import expire_overdue_missions
from src.missions.item_picker import CandidateItem, ItemPicker
from src.missions.load_balancer import BalancedLoad, CognitiveLoadBalancer, LoadBudget
from src.missions.track_selector import TrackSelector

__all__ = [
    "TrackSelector",
    "ItemPicker",
    "CandidateItem",
    "CognitiveLoadBalancer",
    "LoadBudget",
    "BalancedLoad",
    "MissionAssembler",
    "AssemblyResult",
    "BatchStats",
    "run_daily_assembly",
    "expire_overdue_missions",
]
