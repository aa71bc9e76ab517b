from datetime import date

from sqlalchemy import Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from clientdesk.db.session import Base
from clientdesk.models.common import RecordMixin

CLIENT_STATUSES = ("active", "inactive")
# upper bound of the 32-bit Integer column holding `code`
CODE_MAX = 2_147_483_647


class Client(Base, RecordMixin):
    __tablename__ = "clients"

    code: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(15), nullable=True)
    address: Mapped[str | None] = mapped_column(String(200), nullable=True)
    telephone: Mapped[str | None] = mapped_column(String(15), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    pincode: Mapped[str] = mapped_column(String(6), nullable=False)
