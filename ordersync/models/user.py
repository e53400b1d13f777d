from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from ordersync.core.database import Base
from ordersync.core.roles import Role


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("tenant_id", "phone", name="uq_users_tenant_phone"),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(120), nullable=False)
    # Phone number or username used to log in
    phone = Column(String(60), nullable=False)
    role = Column(String(20), nullable=False, default=Role.employee.value)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
