from typing import Any, Dict, Iterable, List, Optional, Tuple
import json
import math
import logging
import re

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..database import Category, Plant, System
from ..exceptions import ConflictError, ValidationError

logger = logging.getLogger(__name__)

CATEGORY_TYPES = ("AYUSH", "Ailment", "UseCase")
PLANT_STATUSES = ("draft", "published")

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def clamp_pagination(page: Optional[int], limit: Optional[int]) -> Tuple[int, int, int]:
    """Normalize page/limit and return (page, limit, offset)"""
    limit = min(max(limit or DEFAULT_LIMIT, 1), MAX_LIMIT)
    page = max(page or 1, 1)
    return page, limit, (page - 1) * limit


def slugify(value: str) -> str:
    return re.sub(r"\s+", "-", value.strip().lower())


def encode_list(values: Optional[Iterable[Optional[str]]]) -> Optional[str]:
    """Store a string list as JSON text, dropping blank entries"""
    if values is None:
        return None
    return json.dumps([v for v in values if v and v.strip()])


def _like(q: str) -> str:
    return f"%{q}%"


class CategoryRepository:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def normalize_type(value: Optional[str]) -> str:
        return value if value in CATEGORY_TYPES else "AYUSH"

    def list(self, q: str = "", page: int = 1, limit: int = DEFAULT_LIMIT,
             with_count: bool = True) -> Tuple[List[Category], Optional[int]]:
        _, limit, offset = clamp_pagination(page, limit)

        query = self.db.query(Category)
        if q:
            query = query.filter(or_(Category.name.like(_like(q)), Category.type.like(_like(q))))

        items = (
            query.order_by(Category.display_order.asc(), Category.name.asc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        total = query.order_by(None).count() if with_count else None
        return items, total

    def get(self, category_id: int) -> Optional[Category]:
        return self.db.get(Category, category_id)

    def create(self, name: Optional[str], type: Optional[str] = "AYUSH",
               icon_url: Optional[str] = None, display_order: Optional[int] = 0) -> int:
        if not name or not name.strip():
            raise ValidationError("Name is required")

        category = Category(
            name=name.strip(),
            type=self.normalize_type(type),
            icon_url=icon_url or None,
            display_order=display_order or 0,
        )
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category.id

    def update(self, category_id: int, changes: Dict[str, Any]) -> Optional[Category]:
        """Apply a partial update; returns None when the category does not exist"""
        category = self.get(category_id)
        if category is None:
            return None

        if "name" in changes:
            name = changes["name"]
            if not name or not name.strip():
                raise ValidationError("Name cannot be empty")
            category.name = name.strip()
        if "type" in changes:
            category.type = self.normalize_type(changes["type"])
        if "icon_url" in changes:
            category.icon_url = changes["icon_url"] or None
        if "display_order" in changes:
            category.display_order = changes["display_order"] or 0

        self.db.commit()
        self.db.refresh(category)
        return category

    def delete(self, category_id: int) -> bool:
        deleted = self.db.query(Category).filter(Category.id == category_id).delete()
        self.db.commit()
        return deleted > 0


class SystemRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[System]:
        return self.db.query(System).order_by(System.name.asc()).all()

    def exists(self, system_id: int) -> bool:
        return self.db.get(System, system_id) is not None


class PlantRepository:
    def __init__(self, db: Session):
        self.db = db
        self.systems = SystemRepository(db)

    @staticmethod
    def normalize_status(value: Optional[str]) -> str:
        return value if value in PLANT_STATUSES else "draft"

    def list(self, q: str = "", status: Optional[str] = None, system_id: Optional[int] = None,
             page: int = 1, limit: int = DEFAULT_LIMIT,
             with_count: bool = True) -> Tuple[List[Plant], Optional[int], Optional[int]]:
        """Returns (items, total, published_pct); the last two are None without counting"""
        _, limit, offset = clamp_pagination(page, limit)

        query = self.db.query(Plant)
        if q:
            query = query.filter(or_(Plant.name.like(_like(q)), Plant.botanical_name.like(_like(q))))
        if status:
            query = query.filter(Plant.status == status.lower())
        if system_id:
            query = query.filter(Plant.system_id == system_id)

        items = (
            query.options(joinedload(Plant.system))
            .order_by(Plant.updated_at.desc(), Plant.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        if not with_count:
            return items, None, None

        total = query.order_by(None).count()
        published = (
            self.db.query(func.count(Plant.id)).filter(Plant.status == "published").scalar() or 0
        )
        # Half rounds up, not to even
        published_pct = math.floor(published / total * 100 + 0.5) if total else 0
        return items, total, published_pct

    def get(self, plant_id: int) -> Optional[Plant]:
        return self.db.query(Plant).options(joinedload(Plant.system)).filter(Plant.id == plant_id).first()

    def _check_system(self, system_id: Optional[int]) -> None:
        if system_id is not None and not self.systems.exists(system_id):
            raise ValidationError("Invalid system_id")

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Slug already exists")

    def create(self, data: Dict[str, Any]) -> int:
        name = data.get("name")
        if not name or not name.strip():
            raise ValidationError("Name is required")
        self._check_system(data.get("system_id"))

        slug = data.get("slug")
        plant = Plant(
            name=name.strip(),
            slug=slugify(slug) if slug and slug.strip() else slugify(name),
            botanical_name=data.get("botanical_name") or None,
            tags=encode_list(data.get("tags")),
            status=self.normalize_status(data.get("status")),
            featured=bool(data.get("featured")),
            hero_image=data.get("hero_image") or None,
            video_url=data.get("video_url") or None,
            model_url=data.get("model_url") or None,
            benefits=encode_list(data.get("benefits")),
            description=data.get("description") or None,
            system_id=data.get("system_id"),
        )
        self.db.add(plant)
        self._commit()
        self.db.refresh(plant)
        return plant.id

    def update(self, plant_id: int, changes: Dict[str, Any]) -> Optional[Plant]:
        """Apply a partial update; returns None when the plant does not exist"""
        plant = self.get(plant_id)
        if plant is None:
            return None

        if "name" in changes:
            name = changes["name"]
            if not name or not name.strip():
                raise ValidationError("Name cannot be empty")
            plant.name = name.strip()
        if "slug" in changes:
            slug = changes["slug"]
            plant.slug = slugify(slug) if slug and slug.strip() else slugify(plant.name)
        if "status" in changes:
            plant.status = self.normalize_status(changes["status"])
        if "featured" in changes:
            plant.featured = bool(changes["featured"])
        if "tags" in changes:
            plant.tags = encode_list(changes["tags"])
        if "benefits" in changes:
            plant.benefits = encode_list(changes["benefits"])
        if "system_id" in changes:
            self._check_system(changes["system_id"])
            plant.system_id = changes["system_id"]
        for field in ("botanical_name", "hero_image", "video_url", "model_url", "description"):
            if field in changes:
                setattr(plant, field, changes[field] or None)

        self._commit()
        self.db.refresh(plant)
        return plant

    def delete(self, plant_id: int) -> bool:
        deleted = self.db.query(Plant).filter(Plant.id == plant_id).delete()
        self.db.commit()
        return deleted > 0
