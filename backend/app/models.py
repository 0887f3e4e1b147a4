from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TicketType(str, Enum):
    standard = "standard"
    vip = "vip"
    early_access = "early_access"


class Venue(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    location: str
    capacity: int
    # False means general admission: one synthetic section, no seat-level granularity.
    has_seats: bool = True

    created_at: datetime = Field(default_factory=_utc_now)


class Section(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    venue_id: int = Field(index=True, foreign_key="venue.id")
    name: str
    capacity: int

    created_at: datetime = Field(default_factory=_utc_now)


class Row(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    section_id: int = Field(index=True, foreign_key="section.id")
    capacity: int

    created_at: datetime = Field(default_factory=_utc_now)


class Seat(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("row_id", "seat_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    row_id: int = Field(index=True, foreign_key="row.id")
    seat_number: int

    created_at: datetime = Field(default_factory=_utc_now)


class Event(SQLModel, table=True):
    # Event metadata lives elsewhere; only what reservations need to reference.
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    venue_id: Optional[int] = Field(default=None, index=True, foreign_key="venue.id")


class Customer(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str

    # JSON object: {"<section_id>": weight, ...}
    preferences_json: str = "{}"

    def preferences(self) -> dict[int, int]:
        raw = json.loads(self.preferences_json or "{}")
        return {int(k): int(v) for k, v in raw.items()}

    def set_preferences(self, weights: dict[int, int]) -> None:
        self.preferences_json = json.dumps({str(k): int(v) for k, v in weights.items()}, sort_keys=True)


class Ticket(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(index=True, foreign_key="event.id")
    customer_id: int = Field(index=True, foreign_key="customer.id")
    # Cleared when the reservation is released or the seat is deleted.
    seat_id: Optional[int] = Field(default=None, index=True, foreign_key="seat.id")
    price: float = 0.0
    ticket_type: TicketType = TicketType.standard

    created_at: datetime = Field(default_factory=_utc_now)


class Reservation(SQLModel, table=True):
    seat_id: int = Field(primary_key=True, foreign_key="seat.id")
    event_id: int = Field(primary_key=True, foreign_key="event.id")

    ticket_id: int = Field(foreign_key="ticket.id")
    customer_id: int = Field(foreign_key="customer.id")

    reserved_at: datetime = Field(default_factory=_utc_now)
