from sqlalchemy import Column, Index, Integer, String, DateTime, JSON, func
from storefront.database import UsersBase

# Per-user activity trail (cart changes, checkouts, profile edits, webhooks)
class ActivityLog(UsersBase):
    __tablename__ = "user_activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Identity provider user id; empty for provider events without a user
    user_id = Column(String, nullable=True)
    action = Column(String(50), nullable=False, index=True)  # CART_ADD, ORDER_CREATE, ...
    resource = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="SUCCESS")  # SUCCESS / FAIL
    ip = Column(String(64), nullable=True)
    meta = Column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_user_activity_user_ts", "user_id", "ts"),
    )
