from typing import List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class CompetitionGroup(SQLModel, table=True):
    __tablename__ = "competition_group"

    id: str = Field(primary_key=True)
    competition_id: str = Field(foreign_key="competition.id", index=True)
    position: int = Field(default=0)
    name: str

    # Timing defaults in minutes (None = engine default)
    default_duration: Optional[int] = Field(default=None)
    default_slack: Optional[int] = Field(default=None)
    default_rest: Optional[int] = Field(default=None)

    # Ordered pitch pool; entries are pitch ids
    pitch_ids: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    primary_pitch_id: Optional[str] = Field(default=None)
