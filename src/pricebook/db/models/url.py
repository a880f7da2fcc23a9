from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from pricebook.db.session import Base, TimestampMixin, UUIDPrimaryKey


class Url(UUIDPrimaryKey, TimestampMixin, Base):
    """Deduplicated source URL. Stored normalized, one row per distinct URL."""

    __tablename__ = "urls"

    url: Mapped[str] = mapped_column(Text, unique=True)
