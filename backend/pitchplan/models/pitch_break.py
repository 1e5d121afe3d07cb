from typing import TYPE_CHECKING

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.tournament import Tournament


class PitchBreakItem(SQLModel, table=True):
    __tablename__ = "pitch_break"

    id: str = Field(primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    position: int = Field(default=0)
    pitch_id: str = Field(index=True)
    start_time: str  # "HH:mm"
    duration: int  # minutes
    label: str = Field(default="")

    tournament: "Tournament" = Relationship(back_populates="pitch_breaks")
