from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import inspect, update
from sqlmodel import Session, SQLModel, delete, select

from .models import Customer, Event, Reservation, Row, Seat, Section, Ticket, Venue


ModelT = TypeVar("ModelT", bound=SQLModel)


class SqlRepository(Generic[ModelT]):
    """
    create/read/update/delete/get_all for one table.

    Writes are flushed, never committed: the caller's transaction() block
    decides when a unit of work is durable.
    """

    def __init__(self, session: Session, model: type[ModelT]):
        self.session = session
        self.model = model
        self._order = tuple(inspect(model).primary_key)

    def create(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        self.session.flush()
        self.session.refresh(entity)
        return entity

    def read(self, entity_id: Any) -> Optional[ModelT]:
        if entity_id is None:
            return None
        return self.session.get(self.model, entity_id)

    def update(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        self.session.flush()
        return entity

    def delete(self, entity_id: Any) -> bool:
        entity = self.read(entity_id)
        if entity is None:
            return False
        self.session.delete(entity)
        self.session.flush()
        return True

    def get_all(self) -> list[ModelT]:
        return list(self.session.exec(select(self.model).order_by(*self._order)).all())

    def find(self, *criteria: Any) -> list[ModelT]:
        # Primary key order doubles as insertion order for every table here.
        stmt = select(self.model).where(*criteria).order_by(*self._order)
        return list(self.session.exec(stmt).all())

    def first(self, *criteria: Any) -> Optional[ModelT]:
        stmt = select(self.model).where(*criteria).order_by(*self._order).limit(1)
        return self.session.exec(stmt).first()

    def delete_where(self, *criteria: Any) -> int:
        res = self.session.exec(delete(self.model).where(*criteria))
        self.session.flush()
        return int(res.rowcount or 0)

    def update_where(self, values: dict[str, Any], *criteria: Any) -> int:
        res = self.session.exec(update(self.model).where(*criteria).values(**values))
        self.session.flush()
        return int(res.rowcount or 0)


@dataclass
class Repositories:
    session: Session
    venues: SqlRepository[Venue]
    sections: SqlRepository[Section]
    rows: SqlRepository[Row]
    seats: SqlRepository[Seat]
    events: SqlRepository[Event]
    customers: SqlRepository[Customer]
    tickets: SqlRepository[Ticket]
    reservations: SqlRepository[Reservation]

    @classmethod
    def for_session(cls, session: Session) -> "Repositories":
        return cls(
            session=session,
            venues=SqlRepository(session, Venue),
            sections=SqlRepository(session, Section),
            rows=SqlRepository(session, Row),
            seats=SqlRepository(session, Seat),
            events=SqlRepository(session, Event),
            customers=SqlRepository(session, Customer),
            tickets=SqlRepository(session, Ticket),
            reservations=SqlRepository(session, Reservation),
        )
