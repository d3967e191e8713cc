"""
Base model class with common fields
"""

from sqlalchemy import Column, DateTime, Enum, Uuid, func
import uuid

from reconciler.core.database import Base


def enum_type(enum_cls):
    """Enum column persisted by value ("completed"), as the admin console reads it"""
    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


class BaseModel(Base):
    """
    Abstract base model with common fields
    """
    __abstract__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False
    )
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )
