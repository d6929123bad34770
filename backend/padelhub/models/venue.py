from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from padelhub.models.tournament import Tournament


class Venue(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    name: str
    address: Optional[str] = None

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="venues")
    courts: List["Court"] = Relationship(back_populates="venue")


class Court(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    venue_id: int = Field(foreign_key="venue.id", index=True)
    name: str

    venue: Venue = Relationship(back_populates="courts")
