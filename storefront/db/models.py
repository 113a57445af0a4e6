import enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer,String,Text,Float,DateTime,Boolean,ForeignKey,Enum
from datetime import datetime, timezone
from typing import List
from storefront.db.session import Base

def now_utc() -> datetime: return datetime.now(timezone.utc)

class Role(str, enum.Enum):
    customer = 'customer'
    admin = 'admin'

class User(Base):
    __tablename__='users'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role, native_enum=False, length=32), default=Role.customer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
    cart_items: Mapped[List['CartItem']] = relationship(back_populates='user', cascade='all, delete-orphan', lazy='selectin')

class CartItem(Base):
    __tablename__='cart_items'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey('products.id', ondelete='CASCADE'))
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    user: Mapped['User'] = relationship(back_populates='cart_items')

class Product(Base):
    __tablename__='products'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(240), nullable=False)
    description: Mapped[str] = mapped_column(Text, default='')
    price: Mapped[float] = mapped_column(Float, nullable=False)
    image: Mapped[str] = mapped_column(String(1024), default='')
    category: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
