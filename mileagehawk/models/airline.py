from sqlalchemy import Column, Integer, String, Boolean, Float
from mileagehawk.database import Base


class Airline(Base):
    """
    A loyalty program reachable by transferring flexible points.

    ``amex_transfer_ratio`` is airline miles per Membership Rewards point
    (0.8 = "5:4"). ``capital_one_transfer_ratio`` is null when the program
    is not a Capital One partner; ``seats_aero_code`` is null when prices
    are chart-based only.
    """
    __tablename__ = "airlines"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(3), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    loyalty_program = Column(String(100), nullable=False)
    loyalty_currency = Column(String(50), nullable=True)
    amex_transfer_ratio = Column(Float, nullable=False, default=1.0)
    capital_one_transfer_ratio = Column(Float, nullable=True)
    alliance = Column(String(30), nullable=True)
    seats_aero_code = Column(String(30), nullable=True, unique=True)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Airline {self.code}: {self.loyalty_program}>"
