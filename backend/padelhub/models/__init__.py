from padelhub.models.category import Category, CategoryFormat, CategoryStatus
from padelhub.models.group import Group, GroupAssignment
from padelhub.models.match import GROUP_ROUND, Match
from padelhub.models.team import Team
from padelhub.models.tournament import Tournament
from padelhub.models.venue import Court, Venue

__all__ = [
    "Tournament",
    "Venue",
    "Court",
    "Category",
    "CategoryFormat",
    "CategoryStatus",
    "Team",
    "Group",
    "GroupAssignment",
    "Match",
    "GROUP_ROUND",
]
