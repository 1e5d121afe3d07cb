from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.competition import Competition
    from pitchplan.models.pitch import Pitch
    from pitchplan.models.pitch_break import PitchBreakItem


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    location: Optional[str] = None
    notes: Optional[str] = None
    version: int = Field(default=0)  # incremented by every persisted action
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    competitions: List["Competition"] = Relationship(back_populates="tournament")
    pitches: List["Pitch"] = Relationship(back_populates="tournament")
    pitch_breaks: List["PitchBreakItem"] = Relationship(back_populates="tournament")
