from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.constants import ER_DUP_ENTRY, ER_LOCK_DEADLOCK, ER_LOCK_WAIT_TIMEOUT
from ..core.exceptions import ConflictError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, rollback on any error.

    Lock wait timeouts and deadlocks surface as ConflictError so the caller
    can retry; no retry happens here.
    """
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        if e.errno in (ER_LOCK_WAIT_TIMEOUT, ER_LOCK_DEADLOCK):
            logger.warning("Transaction aborted on lock contention (errno=%s)", e.errno)
            raise ConflictError("Resource is busy, please retry") from e
        raise
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def is_duplicate_key(error: BaseException) -> bool:
    return isinstance(error, mysql.connector.IntegrityError) and getattr(error, "errno", None) == ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
