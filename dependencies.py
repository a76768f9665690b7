from collections.abc import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from db import SessionLocal
from notifications import Mailer


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer
