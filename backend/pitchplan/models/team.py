from typing import Optional

from sqlmodel import Field, SQLModel


class Team(SQLModel, table=True):
    id: str = Field(primary_key=True)
    competition_id: str = Field(foreign_key="competition.id", index=True)
    position: int = Field(default=0)
    name: str

    # Not a foreign key: a dangling group id is treated as "no group"
    group_id: Optional[str] = Field(default=None)

    initials: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
