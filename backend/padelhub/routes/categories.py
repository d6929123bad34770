from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from padelhub.database import get_session
from padelhub.models.category import Category, CategoryFormat, CategoryStatus
from padelhub.models.match import Match
from padelhub.models.tournament import Tournament

router = APIRouter()


class CategoryCreate(BaseModel):
    name: str
    format: CategoryFormat
    match_duration: int

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()

    @field_validator("match_duration")
    @classmethod
    def validate_match_duration(cls, v):
        if v <= 0:
            raise ValueError("match_duration must be > 0")
        return v


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    format: Optional[CategoryFormat] = None
    match_duration: Optional[int] = None
    status: Optional[CategoryStatus] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip() if v is not None else v

    @field_validator("match_duration")
    @classmethod
    def validate_match_duration(cls, v):
        if v is not None and v <= 0:
            raise ValueError("match_duration must be > 0")
        return v


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    name: str
    format: CategoryFormat
    match_duration: int
    status: CategoryStatus
    team_count: Optional[int] = None


def _to_response(category: Category) -> CategoryResponse:
    response = CategoryResponse.model_validate(category)
    response.team_count = len(category.teams)
    return response


@router.get("/tournaments/{tournament_id}/categories", response_model=List[CategoryResponse])
def get_tournament_categories(tournament_id: int, session: Session = Depends(get_session)):
    """Get all categories for a tournament"""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")

    categories = session.exec(
        select(Category).where(Category.tournament_id == tournament_id).order_by(Category.id)
    ).all()
    return [_to_response(c) for c in categories]


@router.post("/tournaments/{tournament_id}/categories", response_model=CategoryResponse, status_code=201)
def create_category(tournament_id: int, category_data: CategoryCreate, session: Session = Depends(get_session)):
    """Create a new category for a tournament"""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")

    existing = session.exec(
        select(Category).where(Category.tournament_id == tournament_id, Category.name == category_data.name)
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail=f"Category '{category_data.name}' already exists")

    category = Category(tournament_id=tournament_id, **category_data.model_dump())
    session.add(category)
    session.commit()
    session.refresh(category)
    return _to_response(category)


@router.get("/categories/{category_id}", response_model=CategoryResponse)
def get_category(category_id: int, session: Session = Depends(get_session)):
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return _to_response(category)


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
def update_category(category_id: int, category_data: CategoryUpdate, session: Session = Depends(get_session)):
    """
    Update a category. The format is fixed once matches exist; the match
    duration only affects matches scheduled afterwards.
    """
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    update_data = {k: v for k, v in category_data.model_dump(exclude_unset=True).items() if v is not None}

    if "name" in update_data and update_data["name"] != category.name:
        clash = session.exec(
            select(Category).where(
                Category.tournament_id == category.tournament_id,
                Category.name == update_data["name"],
                Category.id != category_id,
            )
        ).first()
        if clash:
            raise HTTPException(status_code=409, detail=f"Category '{update_data['name']}' already exists")

    if "format" in update_data and update_data["format"] != category.format:
        has_matches = session.exec(select(Match.id).where(Match.category_id == category_id)).first()
        if has_matches is not None:
            raise HTTPException(status_code=409, detail="Format cannot change once matches are generated")

    for field, value in update_data.items():
        setattr(category, field, value)
    session.add(category)
    session.commit()
    session.refresh(category)
    return _to_response(category)
