from typing import Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

logger = logging.getLogger(__name__)


def upsert_approval(db: Session, model, keys: dict, defaults: dict) -> Tuple[object, bool]:
    """Find the approval row identified by ``keys`` or create it.

    Creation runs inside a SAVEPOINT so that a concurrent insert of the same
    (request, stage) row surfaces as an IntegrityError on the unique constraint;
    the winner's row is then returned instead. Returns ``(record, created)``.
    """
    record = db.query(model).filter_by(**keys).first()
    if record is not None:
        return record, False

    try:
        with db.begin_nested():
            record = model(**keys, **defaults)
            db.add(record)
        return record, True
    except IntegrityError:
        logger.info(f"Concurrent insert of {model.__tablename__} {keys}, using existing row")
        return db.query(model).filter_by(**keys).one(), False
