# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from padelhub.models.category import Category  # noqa: F401
from padelhub.models.group import Group, GroupAssignment  # noqa: F401
from padelhub.models.match import Match  # noqa: F401
from padelhub.models.team import Team  # noqa: F401
from padelhub.models.tournament import Tournament  # noqa: F401
from padelhub.models.venue import Court, Venue  # noqa: F401
