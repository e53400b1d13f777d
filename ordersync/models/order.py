from sqlalchemy import BigInteger, Column, ForeignKey, Index, Integer, String, Text

from ordersync.core.database import Base
from ordersync.fsm.states import INITIAL_STATUS


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (Index("ix_orders_tenant_created", "tenant_id", "created_at"),)

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)

    content = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=INITIAL_STATUS.value)

    # Weak reference: no FK so the order survives deletion of its creator.
    created_by = Column(Integer, index=True, nullable=True)
    # Snapshot taken at creation time, never joined against users.
    creator_name = Column(String(120), nullable=False, default="")

    # Epoch milliseconds
    created_at = Column(BigInteger, nullable=False, index=True)
