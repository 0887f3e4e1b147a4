from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine


_TX_DEPTH = "venue_seating.tx_depth"

_engine: Optional[Engine] = None


def _default_db_url() -> str:
    # Keep data out of git by default.
    data_dir = Path(os.environ.get("VENUE_SEATING_DATA_DIR", Path.cwd() / "data"))
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / "venue_seating.db"
    return f"sqlite:///{db_path}"


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = os.environ.get("VENUE_SEATING_DB_URL") or _default_db_url()
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _engine = create_engine(url, echo=False, connect_args=connect_args)
    return _engine


def init_db(bind: Optional[Engine] = None) -> None:
    from . import models  # noqa: F401 - ensure models are registered

    SQLModel.metadata.create_all(bind or get_engine())


def get_session(bind: Optional[Engine] = None) -> Session:
    # Managers hand committed objects back to callers; keep them readable after commit.
    return Session(bind or get_engine(), expire_on_commit=False)


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """
    Group manager calls into one commit.

    Nested blocks join the outermost one: only the outermost block commits, and
    an exception escaping it rolls back everything staged inside, so a cascade
    that fails halfway leaves no partial deletes behind.
    """
    depth = session.info.get(_TX_DEPTH, 0)
    session.info[_TX_DEPTH] = depth + 1
    try:
        yield session
        if depth == 0:
            session.commit()
    except Exception:
        if depth == 0:
            session.rollback()
        raise
    finally:
        session.info[_TX_DEPTH] = depth
