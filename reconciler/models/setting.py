"""
Provider settings shared with the admin console
"""

from sqlalchemy import Column, String, JSON, UniqueConstraint

from reconciler.models.base import BaseModel


class ProviderSetting(BaseModel):
    """
    Keyed by (category, provider), e.g. ("payment", "razorpay") holding
    {"keyId": ..., "keySecret": ...}
    """
    __tablename__ = "settings"
    __table_args__ = (
        UniqueConstraint("category", "provider", name="uq_settings_category_provider"),
    )

    category = Column(String(50), nullable=False)
    provider = Column(String(50), nullable=False)
    settings = Column(JSON, nullable=False, default=dict)

    def __repr__(self):
        return f"<ProviderSetting(category={self.category}, provider={self.provider})>"
