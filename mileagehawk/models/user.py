from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from mileagehawk.database import Base


class User(Base):
    """Subscriber profile. Quiet hours are disabled when unset or start == end."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)  # E.164
    timezone = Column(String(50), nullable=True)  # IANA name
    quiet_hours_start = Column(Integer, nullable=True)  # Hour 0-23, e.g., 22 for 10 PM
    quiet_hours_end = Column(Integer, nullable=True)    # Hour 0-23, e.g., 7 for 7 AM
    created_at = Column(DateTime, server_default=func.now())
