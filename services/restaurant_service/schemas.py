from datetime import datetime
from typing import List, Optional

from pydantic import Field

from shared.schemas import CamelModel


class Address(CamelModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)


class RestaurantCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    cuisine: List[str] = []
    address: Address
    phone: str
    image: Optional[str] = None


class RestaurantResponse(CamelModel):
    id: int
    name: str
    description: str
    cuisine: List[str]
    address: Address
    phone: str
    image: Optional[str]
    rating: float
    is_active: bool


class MenuItemCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    category: str = "main"
    image: Optional[str] = None
    is_vegetarian: bool = False
    is_available: bool = True


class MenuItemUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    image: Optional[str] = None
    is_vegetarian: Optional[bool] = None
    is_available: Optional[bool] = None


class MenuItemResponse(CamelModel):
    id: int
    restaurant_id: int
    name: str
    description: str
    price: float
    category: str
    image: Optional[str]
    is_vegetarian: bool
    is_available: bool


class RestaurantDetail(RestaurantResponse):
    menu: List[MenuItemResponse] = []


class ReviewCreate(CamelModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field("", max_length=2000)


class ReviewResponse(CamelModel):
    id: int
    restaurant_id: int
    user_id: int
    user_name: str
    rating: int
    comment: str
    created_at: Optional[datetime] = None
