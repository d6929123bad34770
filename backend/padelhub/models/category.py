from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from padelhub.models.group import Group
    from padelhub.models.match import Match
    from padelhub.models.team import Team
    from padelhub.models.tournament import Tournament


class CategoryFormat(str, Enum):
    GROUPS = "GROUPS"
    SINGLE_ELIMINATION = "SINGLE_ELIMINATION"
    GROUPS_AND_ELIMINATION = "GROUPS_AND_ELIMINATION"


class CategoryStatus(str, Enum):
    REGISTRATION_OPEN = "REGISTRATION_OPEN"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class Category(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    name: str
    format: CategoryFormat = Field(sa_column=Column(String, nullable=False))
    match_duration: int  # minutes
    status: CategoryStatus = Field(
        default=CategoryStatus.REGISTRATION_OPEN,
        sa_column=Column(String, nullable=False, default=CategoryStatus.REGISTRATION_OPEN.value),
    )

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="categories")
    teams: List["Team"] = Relationship(back_populates="category")
    groups: List["Group"] = Relationship(back_populates="category")
    matches: List["Match"] = Relationship(back_populates="category")

    @property
    def has_group_stage(self) -> bool:
        return self.format in (CategoryFormat.GROUPS, CategoryFormat.GROUPS_AND_ELIMINATION)

    @property
    def has_bracket(self) -> bool:
        return self.format in (CategoryFormat.SINGLE_ELIMINATION, CategoryFormat.GROUPS_AND_ELIMINATION)
