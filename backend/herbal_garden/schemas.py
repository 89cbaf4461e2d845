from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
import json


# Base schemas
class BaseResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    errors: Optional[List[str]] = None


class MessageResponse(BaseModel):
    message: str


# Auth schemas
# Fields are optional so missing values reach the auth service and get the
# same "All fields are required" answer as blank ones.
class SignupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(None, alias="fullName")
    email: Optional[str] = None
    role: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class VerifyOTPRequest(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    new_password: Optional[str] = Field(None, alias="newPassword")
    confirm_new_password: Optional[str] = Field(None, alias="confirmNewPassword")
    otp: Optional[str] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    full_name: str = Field(alias="fullName")
    email: str
    role: str


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    user: UserResponse


class SessionResponse(BaseModel):
    success: bool = True
    user: Dict[str, Any]


# Catalog schemas
class CategoryCreate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = "AYUSH"
    icon_url: Optional[str] = None
    display_order: Optional[int] = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    icon_url: Optional[str] = None
    display_order: Optional[int] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: str
    icon_url: Optional[str] = None
    display_order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryListResponse(BaseModel):
    items: List[CategoryResponse]
    count: Optional[int] = None


class SystemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class PlantCreate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    botanical_name: Optional[str] = None
    tags: Optional[List[Optional[str]]] = None
    status: Optional[str] = "draft"
    featured: bool = False
    hero_image: Optional[str] = None
    video_url: Optional[str] = None
    model_url: Optional[str] = None
    benefits: Optional[List[Optional[str]]] = None
    description: Optional[str] = None
    system_id: Optional[int] = None


class PlantUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    botanical_name: Optional[str] = None
    tags: Optional[List[Optional[str]]] = None
    status: Optional[str] = None
    featured: Optional[bool] = None
    hero_image: Optional[str] = None
    video_url: Optional[str] = None
    model_url: Optional[str] = None
    benefits: Optional[List[Optional[str]]] = None
    description: Optional[str] = None
    system_id: Optional[int] = None


class PlantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    botanical_name: Optional[str] = None
    tags: List[str] = []
    status: str
    featured: bool
    hero_image: Optional[str] = None
    video_url: Optional[str] = None
    model_url: Optional[str] = None
    benefits: List[str] = []
    description: Optional[str] = None
    system_id: Optional[int] = None
    system_name: Optional[str] = None
    updated_at: Optional[datetime] = None

    @field_validator('tags', 'benefits', mode='before')
    @classmethod
    def decode_json_list(cls, v):
        if v is None or v == "":
            return []
        if isinstance(v, str):
            return json.loads(v)
        return v

    @classmethod
    def from_plant(cls, plant) -> "PlantResponse":
        response = cls.model_validate(plant)
        response.system_name = plant.system.name if plant.system else None
        return response


class PlantListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[PlantResponse]
    count: Optional[int] = None
    published_pct: Optional[int] = Field(None, alias="publishedPct")


class CreatedResponse(BaseModel):
    id: int
    message: str
