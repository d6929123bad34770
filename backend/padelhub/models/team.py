from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from padelhub.models.category import Category


class Team(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("category_id", "name", name="uq_category_team_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: int = Field(foreign_key="category.id", index=True)
    name: str
    player1: Optional[str] = None
    player2: Optional[str] = None
    seeded: bool = Field(default=False)

    category: "Category" = Relationship(back_populates="teams")
