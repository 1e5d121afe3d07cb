from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.tournament import Tournament


class Competition(SQLModel, table=True):
    id: str = Field(primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    position: int = Field(default=0)  # order within the tournament
    name: str
    code: str  # 2-3 chars, prefix of fixture match ids
    color: Optional[str] = None  # "#rrggbb"

    tournament: "Tournament" = Relationship(back_populates="competitions")
