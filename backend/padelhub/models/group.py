from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from padelhub.models.category import Category


class Group(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("category_id", "name", name="uq_category_group_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: int = Field(foreign_key="category.id", index=True)
    name: str  # "A", "B", ...

    category: "Category" = Relationship(back_populates="groups")
    assignments: List["GroupAssignment"] = Relationship(back_populates="group")


class GroupAssignment(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("group_id", "team_id", name="uq_assignment_group_team"),
        # A team sits in at most one group of its category
        SAUniqueConstraint("category_id", "team_id", name="uq_assignment_category_team"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="group.id", index=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    category_id: int = Field(foreign_key="category.id")

    # Standings (only ever changed through atomic increments)
    played: int = Field(default=0)
    won: int = Field(default=0)
    lost: int = Field(default=0)
    points: int = Field(default=0)

    group: Group = Relationship(back_populates="assignments")
