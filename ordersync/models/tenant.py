from sqlalchemy import Column, DateTime, Integer, String, Text, func

from ordersync.core.database import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    slug = Column(String(80), unique=True, index=True, nullable=False)
    name = Column(String(120), nullable=False)

    # Branding shown on the organization picker
    logo = Column(Text, nullable=True)
    description = Column(String(255), nullable=False, default="")
    color = Column(String(20), nullable=False, default="indigo")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
