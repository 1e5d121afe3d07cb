from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.tournament import Tournament


class Pitch(SQLModel, table=True):
    id: str = Field(primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    position: int = Field(default=0)
    name: str
    start_time: Optional[str] = Field(default=None)  # "HH:mm", engine default 10:00
    end_time: Optional[str] = Field(default=None)  # "HH:mm", informational only

    tournament: "Tournament" = Relationship(back_populates="pitches")
