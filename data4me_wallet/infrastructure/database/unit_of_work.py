"""Transactional unit of work with retry on optimistic-lock conflicts"""

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from data4me_wallet.domain.exceptions import DomainException, PersistenceError
from data4me_wallet.infrastructure.observability.metrics import version_conflict_counter

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5


def run_in_transaction(db: Session, work: Callable[[], T], max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> T:
    """
    Run `work` and commit everything it wrote as one database transaction.

    Behaviour:
    - Any exception rolls back every write made by `work`
    - A version conflict (another request updated the same row first) rolls
      back and re-runs `work` from scratch against fresh state
    - Domain errors propagate unchanged; store errors become PersistenceError

    `work` must therefore be safe to call more than once: it re-reads what it
    needs instead of capturing ORM state from outside.

    On PostgreSQL the row lock taken by the ledger serializes writers to one
    wallet, so conflicts are rare. SQLite ignores FOR UPDATE and every writer
    to a wallet meets the others at the version check instead. A writer only
    loses when a rival commits, so N concurrent writers to one row need a
    budget of N attempts to be sure none of them gives up.

    Raises:
        PersistenceError: On store failure or when conflicts outlast max_attempts
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            result = work()
            db.commit()
            return result

        except StaleDataError as e:
            db.rollback()
            version_conflict_counter.inc()
            if attempt >= max_attempts:
                logging.error(f"Giving up after {attempt} conflicting attempts: {e}")
                raise PersistenceError("Concurrent update conflict, please retry") from e
            logging.info("Version conflict, retrying unit of work", extra={"attempt": attempt})

        except DomainException:
            db.rollback()
            raise

        except SQLAlchemyError as e:
            db.rollback()
            logging.error(f"Database error: {e}")
            raise PersistenceError("Could not save changes, nothing was applied") from e

        except Exception:
            db.rollback()
            raise
