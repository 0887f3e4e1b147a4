from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .models import TicketType


class VenueCreate(BaseModel):
    name: str
    location: str
    capacity: int
    has_seats: bool = True


class VenueUpdate(BaseModel):
    name: str
    location: str
    capacity: int
    has_seats: bool = True


class SectionCreate(BaseModel):
    name: str
    capacity: int


class SectionBulkCreate(BaseModel):
    count: int = Field(ge=1)
    capacity: int
    base_name: str = "Section"


class SectionUpdate(BaseModel):
    name: str
    capacity: int


class RowCreate(BaseModel):
    capacity: int


class RowBulkCreate(BaseModel):
    count: int = Field(ge=1)
    capacity: int


class RowUpdate(BaseModel):
    capacity: int


class SeatCreate(BaseModel):
    seat_number: int


class SeatBulkCreate(BaseModel):
    count: int = Field(ge=1)


class ClosestSeatRequest(BaseModel):
    section_id: int
    event_id: int
    selected_seat_numbers: list[int] = Field(default_factory=list)


class ReserveRequest(BaseModel):
    event_id: int
    customer_id: int
    price: float = Field(ge=0, default=0.0)
    ticket_type: TicketType = TicketType.standard


class UnreserveRequest(BaseModel):
    # Optional when the seat is held for a single event.
    event_id: Optional[int] = None


class EventCreate(BaseModel):
    name: str
    venue_id: Optional[int] = None


class CustomerCreate(BaseModel):
    username: str
    # section_id -> weight; higher is preferred
    preferences: dict[int, int] = Field(default_factory=dict)


class RecommendationRequest(BaseModel):
    customer_id: int
    venue_id: int
    event_id: int
