from contextlib import contextmanager
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError

from wellflow.extensions import db


class ServiceError(Exception):
    pass


def _ensure(cond: bool, msg: str):
    if not cond:
        raise ServiceError(msg)


def _to_decimal(v, default="0") -> Decimal:
    if v is None or v == "":
        return Decimal(default)
    if isinstance(v, Decimal):
        return v if v.is_finite() else Decimal(default)
    try:
        d = Decimal(str(v).strip().replace(",", "."))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal(default)
    return d if d.is_finite() else Decimal(default)


def _upper(v):
    v = (v or "").strip()
    return v.upper() or None


@contextmanager
def transaction():
    try:
        yield
        db.session.commit()
    except IntegrityError as ie:
        db.session.rollback()
        raise ServiceError(f"Violação de integridade: {ie.orig}") from ie
    except Exception:
        db.session.rollback()
        raise
