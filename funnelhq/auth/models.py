from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime
from funnelhq.shared.db import Base

def _now() -> datetime:
    return datetime.now(timezone.utc)

class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String)
    role: Mapped[str] = mapped_column(String(32), default="admin")  # admin|team_member|client
    organization_id: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)

    # written by the trial lifecycle jobs only; guards just read them
    subscription_plan: Mapped[str] = mapped_column(String(16), default="pro_trial")  # solo|pro_trial|pro
    trial_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
