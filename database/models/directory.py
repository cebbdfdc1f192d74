"""Lookup tables used by forms: venue locations and key/value settings."""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String
from database.engine import Base


class Location(Base):
    __tablename__: str = "locations"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)


class AppSetting(Base):
    """Administrator-editable setting, e.g. ``hourly_rate``."""

    __tablename__: str = "settings"
    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String(500), nullable=False)
