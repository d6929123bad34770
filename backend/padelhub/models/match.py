from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from padelhub.models.category import Category

GROUP_ROUND = "GROUP"


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("court_id", "scheduled_time", name="uq_match_court_time"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: int = Field(foreign_key="category.id", index=True)

    # NULL = open slot (awaiting a previous winner, or a bye)
    team_a_id: Optional[int] = Field(default=None, foreign_key="team.id")
    team_b_id: Optional[int] = Field(default=None, foreign_key="team.id")

    group_id: Optional[int] = Field(default=None, foreign_key="group.id", index=True)
    round: str  # "GROUP" | "FINAL" | "SEMI" | "QUARTER" | "ROUND_OF_16" | "ROUND_OF_32" | "ROUND_<n>"
    bracket_position: Optional[int] = Field(default=None)  # 0-based within its bracket round

    score_a: Optional[str] = None  # e.g. "6-4,6-2"
    score_b: Optional[str] = None
    winner_id: Optional[int] = Field(default=None, foreign_key="team.id")

    # Written and cleared together
    court_id: Optional[int] = Field(default=None, foreign_key="court.id", index=True)
    scheduled_time: Optional[datetime] = Field(default=None)

    completed: bool = Field(default=False)
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    category: "Category" = Relationship(back_populates="matches")

    @property
    def is_group_match(self) -> bool:
        return self.group_id is not None

    @property
    def team_ids(self):
        return [t for t in (self.team_a_id, self.team_b_id) if t is not None]
