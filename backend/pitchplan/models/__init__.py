from pitchplan.models.competition import Competition
from pitchplan.models.competition_group import CompetitionGroup
from pitchplan.models.fixture import Fixture
from pitchplan.models.pitch import Pitch
from pitchplan.models.pitch_break import PitchBreakItem
from pitchplan.models.team import Team
from pitchplan.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Competition",
    "CompetitionGroup",
    "Team",
    "Fixture",
    "Pitch",
    "PitchBreakItem",
]
