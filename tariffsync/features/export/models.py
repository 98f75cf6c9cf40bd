"""Export target ORM model."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tariffsync.core.database import Base
from tariffsync.shared.models import TimestampMixin


class Spreadsheet(TimestampMixin, Base):
    """Google spreadsheet the latest tariffs are republished to.

    Read fresh on every export pass, so adding or removing a row takes
    effect on the next pass without a restart.

    Attributes:
        id: Primary key.
        spreadsheet_id: Google spreadsheet ID (unique).
    """

    __tablename__ = "spreadsheet"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    spreadsheet_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
