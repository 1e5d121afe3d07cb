from typing import Optional

from sqlmodel import Field, SQLModel


class Fixture(SQLModel, table=True):
    id: str = Field(primary_key=True)
    competition_id: str = Field(foreign_key="competition.id", index=True)
    position: int = Field(default=0)  # list order; match_id number derives from it

    # Team ids, or placeholder text ("TBD", "Winner QF1", ...)
    home_team_id: str
    away_team_id: str

    stage: str = Field(default="Group")  # "Group" | "Round of 16" | "Quarter-Final" | ... | free-form
    group_id: Optional[str] = Field(default=None)
    description: Optional[str] = None

    # Scheduling (pitch_id is not a foreign key; a deleted pitch clears it)
    pitch_id: Optional[str] = Field(default=None, index=True)
    start_time: Optional[str] = Field(default=None)  # "HH:mm"
    duration: int = Field(default=20)
    slack: Optional[int] = Field(default=None)
    rest: Optional[int] = Field(default=None)
    slack_before: Optional[int] = Field(default=None)  # computed gap, not user-set
    match_id: Optional[str] = Field(default=None)  # "<code>.<NN>", regenerated
    schedule_status: str = Field(default="unplaced")  # "unplaced" | "tentative" | "confirmed"
