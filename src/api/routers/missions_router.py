"""
Missions API Router.

Endpoints for the daily mission lifecycle:
- Generate today's mission (or a given date's)
- Fetch today's mission
- Start, complete and skip tasks
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from src.api.dependencies import get_clock
from src.core.clock import Clock
from src.db import queries
from src.db.database import get_db
from src.db.models import DailyMission, Difficulty, MissionStatus, MissionTask, TaskStatus, TaskType
from src.gamification.settlement import SettlementEngine
from src.missions.assembler import MissionAssembler, get_today_mission

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class GenerateMissionRequest(BaseModel):
    mission_date: date | None = Field(None, description="Defaults to today in the user's timezone")


class CompleteTaskRequest(BaseModel):
    actual_minutes: int | None = Field(None, ge=0, description="Minutes spent (default: estimate)")
    difficulty_rating: int | None = Field(None, ge=1, le=5)
    effort_rating: int | None = Field(None, ge=1, le=5)


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    mission_id: UUID
    track_id: UUID | None
    track_item_id: UUID | None
    task_type: TaskType
    status: TaskStatus
    difficulty: Difficulty | None
    estimated_minutes: int
    actual_minutes: int | None
    started_at: datetime | None
    completed_at: datetime | None
    difficulty_rating: int | None
    effort_rating: int | None


class MissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    mission_date: date
    status: MissionStatus
    assigned_at: datetime | None
    deadline: datetime
    completed_at: datetime | None
    total_estimated_minutes: int
    actual_minutes_spent: int
    tasks: list[TaskResponse] = []


def _mission_response(mission: DailyMission, tasks: list[MissionTask]) -> MissionResponse:
    response = MissionResponse.model_validate(mission, from_attributes=True)
    response.tasks = [TaskResponse.model_validate(t) for t in tasks]
    return response


# ========================================
# Missions
# ========================================


@router.post("/users/{user_id}/missions/generate")
def generate_mission(
    user_id: UUID,
    response: Response,
    request: GenerateMissionRequest | None = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> dict:
    """
    Assemble a mission. 409 when one already exists for the date; a null
    mission means there was nothing to assign.
    """
    mission_date = request.mission_date if request else None
    result = MissionAssembler(db, clock=clock).assemble(user_id, mission_date)
    if result is None:
        return {"mission": None, "message": "No tracks or items available to create mission"}

    response.status_code = status.HTTP_201_CREATED
    return {"mission": _mission_response(result.mission, result.tasks)}


@router.get("/users/{user_id}/missions/today")
def today_mission(
    user_id: UUID, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> dict:
    found = get_today_mission(db, user_id, clock=clock)
    if found is None:
        return {"mission": None}
    return {"mission": _mission_response(*found)}


@router.get("/missions/{mission_id}")
def get_mission(mission_id: UUID, db: Session = Depends(get_db)) -> dict:
    mission = queries.get_mission(db, mission_id)
    return {"mission": _mission_response(mission, queries.get_mission_tasks(db, mission.id))}


# ========================================
# Tasks
# ========================================


@router.post("/tasks/{task_id}/start")
def start_task(
    task_id: UUID, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> dict:
    task = SettlementEngine(db, clock=clock).start_task(task_id)
    return {"task": TaskResponse.model_validate(task)}


@router.post("/tasks/{task_id}/complete")
def complete_task(
    task_id: UUID,
    request: CompleteTaskRequest | None = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Settle a completion: XP, track progress and streaks."""
    request = request or CompleteTaskRequest()
    result = SettlementEngine(db, clock=clock).complete_task(task_id, **request.model_dump())
    return {
        "task": TaskResponse.model_validate(result.task),
        "xp_awarded": result.xp_awarded,
        "global_streak": result.global_streak.current_streak if result.global_streak else 0,
    }


@router.post("/tasks/{task_id}/skip")
def skip_task(
    task_id: UUID, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> dict:
    task = SettlementEngine(db, clock=clock).skip_task(task_id)
    return {"task": TaskResponse.model_validate(task)}
