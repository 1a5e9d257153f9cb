from typing import Annotated, List, Literal, Optional, Set, Union

from pydantic import BaseModel, Field

from premium import CoverageLevel

Slot = Literal["vehicle_age", "horsepower", "coverage_level"]
Role = Literal["system", "user", "assistant"]

# blocking slots in the order they are asked; city is never blocking
REQUIRED_SLOTS: List[Slot] = ["vehicle_age", "horsepower", "coverage_level"]


class ChatMessage(BaseModel):
    role: Role
    content: str


class VehicleFacts(BaseModel):
    vehicle_age: int
    horsepower: int
    city: str


class PremiumDraft(BaseModel):
    vehicle_age: Optional[int] = None
    horsepower: Optional[int] = None
    city: Optional[str] = None
    coverage_level: Optional[CoverageLevel] = None
    pending_slot: Optional[Slot] = None

    def missing_slot(self) -> Optional[Slot]:
        for slot in REQUIRED_SLOTS:
            if getattr(self, slot) is None:
                return slot
        return None


class Idle(BaseModel):
    kind: Literal["idle"] = "idle"


class Collecting(BaseModel):
    kind: Literal["collecting"] = "collecting"
    draft: PremiumDraft


class AwaitingComparison(BaseModel):
    kind: Literal["pending_comparison"] = "pending_comparison"
    options: List[CoverageLevel] = Field(min_length=1, max_length=2)


Phase = Annotated[Union[Idle, Collecting, AwaitingComparison], Field(discriminator="kind")]


class DialogueState(BaseModel):
    phase: Phase = Field(default_factory=Idle)
    last_premium: Optional[VehicleFacts] = None
    compared_levels: Set[CoverageLevel] = Field(default_factory=set)
