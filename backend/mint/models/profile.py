from __future__ import annotations
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, ForeignKey, DateTime, func

from .authz import Base  # reuse same metadata


class MerchantProfile(Base):
    __tablename__ = 'merchant_profiles'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    business_name: Mapped[str] = mapped_column(String(128), nullable=False, default='')
    business_type: Mapped[str] = mapped_column(String(64), nullable=False, default='')
    address: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    city: Mapped[str] = mapped_column(String(64), nullable=False, default='')
    state: Mapped[str] = mapped_column(String(64), nullable=False, default='')
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now())


class IndividualProfile(Base):
    __tablename__ = 'individual_profiles'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(64))
    state: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now())
