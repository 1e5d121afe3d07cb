# Import all models to ensure SQLModel metadata is populated for tests
from pitchplan.models.competition import Competition  # noqa: F401
from pitchplan.models.competition_group import CompetitionGroup  # noqa: F401
from pitchplan.models.fixture import Fixture  # noqa: F401
from pitchplan.models.pitch import Pitch  # noqa: F401
from pitchplan.models.pitch_break import PitchBreakItem  # noqa: F401
from pitchplan.models.team import Team  # noqa: F401
from pitchplan.models.tournament import Tournament  # noqa: F401
