"""Runtime configuration rows, editable by administrators."""

from sqlalchemy import Column, String, Text

from advising.database import Base
from advising.models.base import generate_id


class ConfigEntry(Base):
    """A named configuration value with a fallback default."""

    __tablename__ = "config"

    id = Column(String, primary_key=True, default=lambda: generate_id("config"))
    name = Column(String, nullable=False, unique=True, index=True)
    value = Column(Text, nullable=True)
    default_value = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    @property
    def effective_value(self):
        return self.value if self.value is not None else self.default_value
