from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from storefront.db.models import Role

class CartItemRead(BaseModel):
    product_id: int
    quantity: int
    class Config: from_attributes = True

class UserRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: Role
    cart_items: List[CartItemRead] = []
    class Config: from_attributes = True

class RegisterPayload(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=1)
    role: Role = Role.customer

class LoginPayload(BaseModel):
    # unvalidated, so a malformed address fails like any unknown one
    email: str
    password: str

class MessageRead(BaseModel):
    message: str

class ProductBase(BaseModel):
    name: str = Field(min_length=1, max_length=240)
    description: str = ''
    price: float = Field(ge=0)
    category: str = Field(min_length=1, max_length=120)

class ProductCreate(ProductBase):
    # base64 data URL; uploaded to the image store on create
    image: Optional[str] = None

class ProductRead(ProductBase):
    id: int
    image: str = ''
    is_featured: bool = False
    class Config: from_attributes = True

class RecommendedProduct(BaseModel):
    id: int
    name: str
    description: str = ''
    image: str = ''
    price: float
    class Config: from_attributes = True
