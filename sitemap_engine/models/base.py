"""
Base model class with common fields and functionality
"""

from sqlalchemy import Column, DateTime, Uuid, func
from sqlalchemy.orm import declarative_base, declared_attr
import uuid

# Create the base class
Base = declarative_base()


class BaseModel(Base):
    """
    Base model class that provides common fields and functionality
    for all database models
    """
    __abstract__ = True

    # Primary key
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
        index=True
    )

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @declared_attr
    def __tablename__(cls) -> str:
        """
        Automatically generate table name from class name
        Convert CamelCase to snake_case
        """
        import re
        name = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', cls.__name__)
        return re.sub('([a-z0-9])([A-Z])', r'\1_\2', name).lower()

    def __repr__(self) -> str:
        """
        String representation of the model
        """
        return f"<{self.__class__.__name__}(id={self.id})>"
