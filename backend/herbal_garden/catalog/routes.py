from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..auth.dependencies import require_admin
from ..database import get_db
from ..exceptions import NotFoundError, ValidationError
from ..schemas import (
    CategoryCreate,
    CategoryListResponse,
    CategoryResponse,
    CategoryUpdate,
    CreatedResponse,
    MessageResponse,
    PlantCreate,
    PlantListResponse,
    PlantResponse,
    PlantUpdate,
    SystemResponse,
)
from .repository import CategoryRepository, PlantRepository, SystemRepository

router = APIRouter(dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


def valid_id(item_id: int) -> int:
    if item_id < 1:
        raise ValidationError("Invalid id")
    return item_id


def wants_count(count: Optional[str]) -> bool:
    return count != "false"


# Categories
@router.get("/categories", response_model=CategoryListResponse, response_model_exclude_none=True)
def list_categories(
    q: str = "",
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    count: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List categories, optionally filtered by name/type"""

    items, total = CategoryRepository(db).list(q.strip(), page, limit, with_count=wants_count(count))
    return CategoryListResponse(
        items=[CategoryResponse.model_validate(category) for category in items],
        count=total,
    )


@router.post("/categories", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def create_category(request: CategoryCreate, db: Session = Depends(get_db)):
    category_id = CategoryRepository(db).create(
        request.name, request.type, request.icon_url, request.display_order
    )
    logger.info(f"Category {category_id} created")
    return CreatedResponse(id=category_id, message="Category created")


@router.put("/categories/{category_id}", response_model=MessageResponse)
def update_category(category_id: int, request: CategoryUpdate, db: Session = Depends(get_db)):
    changes = request.model_dump(exclude_unset=True)
    if not changes:
        return MessageResponse(message="No changes")

    if CategoryRepository(db).update(valid_id(category_id), changes) is None:
        raise NotFoundError("Category not found")
    return MessageResponse(message="Category updated")


@router.delete("/categories/{category_id}", response_model=MessageResponse)
def delete_category(category_id: int, db: Session = Depends(get_db)):
    if not CategoryRepository(db).delete(valid_id(category_id)):
        raise NotFoundError("Category not found")
    logger.info(f"Category {category_id} deleted")
    return MessageResponse(message="Category deleted")


# Systems
@router.get("/systems", response_model=List[SystemResponse])
def list_systems(db: Session = Depends(get_db)):
    return [SystemResponse.model_validate(system) for system in SystemRepository(db).list_all()]


# Plants
@router.get("/plants", response_model=PlantListResponse, response_model_exclude_none=True)
def list_plants(
    q: str = "",
    status_filter: Optional[str] = Query(None, alias="status"),
    system: Optional[int] = Query(None),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    count: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List plants with search, status/system filters and paging"""

    items, total, published_pct = PlantRepository(db).list(
        q.strip(), status_filter, system, page, limit, with_count=wants_count(count)
    )
    return PlantListResponse(
        items=[PlantResponse.from_plant(plant) for plant in items],
        count=total,
        published_pct=published_pct,
    )


@router.get("/plants/{plant_id}", response_model=PlantResponse)
def get_plant(plant_id: int, db: Session = Depends(get_db)):
    plant = PlantRepository(db).get(valid_id(plant_id))
    if plant is None:
        raise NotFoundError("Plant not found")
    return PlantResponse.from_plant(plant)


@router.post("/plants", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def create_plant(request: PlantCreate, db: Session = Depends(get_db)):
    plant_id = PlantRepository(db).create(request.model_dump())
    logger.info(f"Plant {plant_id} created")
    return CreatedResponse(id=plant_id, message="Plant created")


@router.put("/plants/{plant_id}", response_model=MessageResponse)
def update_plant(plant_id: int, request: PlantUpdate, db: Session = Depends(get_db)):
    changes = request.model_dump(exclude_unset=True)
    if not changes:
        return MessageResponse(message="No changes")

    if PlantRepository(db).update(valid_id(plant_id), changes) is None:
        raise NotFoundError("Plant not found")
    return MessageResponse(message="Plant updated")


@router.delete("/plants/{plant_id}", response_model=MessageResponse)
def delete_plant(plant_id: int, db: Session = Depends(get_db)):
    if not PlantRepository(db).delete(valid_id(plant_id)):
        raise NotFoundError("Plant not found")
    logger.info(f"Plant {plant_id} deleted")
    return MessageResponse(message="Plant deleted")
