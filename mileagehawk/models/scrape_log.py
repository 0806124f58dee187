from sqlalchemy import Column, Integer, String, DateTime, Text, Enum as SQLEnum
from mileagehawk.database import Base
from mileagehawk.models.enums import ScrapeStatus
from mileagehawk.utils.dates import utc_now


class ScrapeLog(Base):
    """
    One row per ingestion run.

    Created as RUNNING when the run starts and finalized as COMPLETED,
    PARTIAL (some sources failed) or FAILED (the run itself failed).
    """
    __tablename__ = "scrape_logs"

    id = Column(Integer, primary_key=True, index=True)
    source = Column(String(30), nullable=False)
    status = Column(SQLEnum(ScrapeStatus), nullable=False, default=ScrapeStatus.RUNNING)

    routes_total = Column(Integer, default=0, nullable=False)
    routes_success = Column(Integer, default=0, nullable=False)
    routes_failed = Column(Integer, default=0, nullable=False)
    prices_found = Column(Integer, default=0, nullable=False)
    duration_ms = Column(Integer, default=0, nullable=False)
    error_message = Column(Text, nullable=True)

    started_at = Column(DateTime, default=utc_now, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<ScrapeLog {self.id}: {self.source} {self.status}>"
