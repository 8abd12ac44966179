"""
Pydantic schemas for the Compost Assistant API.
Includes categorical enums, pile/material/turn payloads and engine outputs.
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Dict, Tuple
from datetime import datetime
from enum import Enum


# ==================== ENUMS ====================

class TemperatureCategory(str, Enum):
    """Felt core temperature of a pile."""
    COLD = "cold"
    WARM = "warm"
    HOT = "hot"


class MoistureCategory(str, Enum):
    """Moisture of a pile judged by feel."""
    DRY = "dry"
    HUMID = "humid"
    WET = "wet"


class BalanceSeverity(str, Enum):
    """Brown:Green balance band."""
    EMPTY = "empty"
    OK = "ok"
    WARN_GREENS = "warn_greens"
    WARN_BROWNS = "warn_browns"


class TaskKind(str, Enum):
    """Kinds of derived compost tasks."""
    TURN_PILE = "turn_pile"
    UPDATE_LOG = "update_log"
    CHECK_HARVEST = "check_harvest"
    BALANCE_RATIO = "balance_ratio"
    COMPOST_MILESTONE = "compost_milestone"


class PileStatus(str, Enum):
    """Display status of a pile."""
    HEALTHY = "healthy"
    NEED_ACTION = "need_action"
    HARVESTED = "harvested"


# ==================== METHOD SCHEMAS ====================

class CompostMethodResponse(BaseModel):
    """Compost method with its duration envelope."""
    id: int
    name: str
    description: str
    duration_low_days: int
    duration_high_days: int
    space_low: int
    space_high: int
    midpoint_days: float

    model_config = ConfigDict(from_attributes=True)


# ==================== PILE SCHEMAS ====================

class PileCreate(BaseModel):
    """Schema for creating a new pile."""
    name: str = Field(..., min_length=1, max_length=100, description="Name for this pile")
    method_id: Optional[int] = Field(None, description="Compost method providing the duration envelope")


class PileRename(BaseModel):
    """Schema for renaming a pile."""
    name: str = Field(..., max_length=100)


class VitalsUpdate(BaseModel):
    """Raw vitals as entered by the user; normalized by the service."""
    temperature: str = Field(..., min_length=1, max_length=20, description="cold, warm or hot")
    moisture: str = Field(..., min_length=1, max_length=20, description="dry, humid or wet")


class MaterialCreate(BaseModel):
    """One discrete material unit added to a pile."""
    brown_amount: int = Field(default=0, ge=0, le=1000)
    green_amount: int = Field(default=0, ge=0, le=1000)
    is_shredded: bool = False

    @model_validator(mode="after")
    def has_some_material(self):
        if self.brown_amount + self.green_amount == 0:
            raise ValueError("Add at least one brown or green unit")
        return self


class MaterialUpdate(BaseModel):
    is_shredded: bool


class MaterialResponse(BaseModel):
    id: int
    pile_id: int
    brown_amount: int
    green_amount: int
    is_shredded: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TurnResponse(BaseModel):
    id: int
    pile_id: int
    turned_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PileSummary(BaseModel):
    """Pile row for list views."""
    id: int
    name: str
    temperature_category: TemperatureCategory
    moisture_category: MoistureCategory
    created_at: datetime
    last_logged: datetime
    harvested_at: Optional[datetime] = None
    estimated_harvest_at: Optional[datetime] = None
    is_healthy: bool
    status: PileStatus
    method_id: Optional[int] = None
    total_brown: int
    total_green: int
    turn_count: int
    last_turned_at: Optional[datetime] = None


class PileDetail(PileSummary):
    """Full pile with its material additions and turn history."""
    materials: List[MaterialResponse] = Field(default_factory=list)
    turns: List[TurnResponse] = Field(default_factory=list)


class PileListResponse(BaseModel):
    items: List[PileSummary]
    total: int


# ==================== ENGINE OUTPUT SCHEMAS ====================

class BalanceResponse(BaseModel):
    """Brown:Green balance advice."""
    severity: BalanceSeverity
    title: str
    message: str
    tip: Optional[str] = None
    needed_text: Optional[str] = None
    required_browns: int = 0
    required_greens: int = 0
    ratio: float
    progress: float = Field(ge=0, le=1)
    brown_share: float = Field(ge=0, le=1)
    simplified_ratio: Tuple[int, int]


class ETAResponse(BaseModel):
    """Harvest ETA with the multipliers that produced it."""
    pile_id: int
    m_temperature: float
    m_moisture: float
    m_brown_green: float
    f_shredded: float
    m_turn: float
    base_days: int
    effective_days: int
    estimated_date: datetime
    temperature_c: float
    moisture_pct: float
    brown_green_ratio: float
    turns_per_month: float
    stored: bool = Field(description="Whether the estimate was persisted on the pile")


class TaskResponse(BaseModel):
    pile_id: int
    pile_name: str
    kind: TaskKind
    due_date: datetime
    is_completed: bool = False
    is_overdue: bool = False
    note: Optional[str] = None


class TaskListResponse(BaseModel):
    items: List[TaskResponse]
    total: int


class ReminderResponse(BaseModel):
    identifier: str
    pile_id: int
    kind: TaskKind
    title: str
    body: str
    trigger_at: datetime


class InsightResponse(BaseModel):
    total_piles: int
    active_piles: int
    harvested_piles: int
    total_turns: int
    total_browns: int
    total_greens: int
    total_materials: int
    waste_rescued_kg: float
    waste_rescued_text: str
    average_active_age_days: int
    composting_streak_days: int
    share_text: str
    status_counts: Dict[str, int] = Field(default_factory=dict)
