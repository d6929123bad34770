from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from padelhub.models.category import Category
    from padelhub.models.venue import Venue


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    start_date: date
    end_date: date
    description: Optional[str] = None
    external_link: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    venues: List["Venue"] = Relationship(back_populates="tournament")
    categories: List["Category"] = Relationship(back_populates="tournament")
