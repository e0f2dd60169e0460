from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector

from ..core.constants import DEFAULT_LOCK_WAIT_SECONDS, DEFAULT_MYSQL_PORT


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    lock_wait_timeout: int = DEFAULT_LOCK_WAIT_SECONDS

    @classmethod
    def from_dict(cls, db_config: dict, *, lock_wait_timeout: Optional[int] = None) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", DEFAULT_MYSQL_PORT)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "office_admin")),
            lock_wait_timeout=int(lock_wait_timeout or db_config.get("lock_wait_timeout", DEFAULT_LOCK_WAIT_SECONDS)),
        )


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation, so each request
    worker owns its own connection and transaction. Nothing is cached in-process.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        conn = mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            autocommit=False,
        )
        cur = conn.cursor()
        try:
            # Row locks taken by FOR UPDATE give up after this many seconds.
            cur.execute("SET SESSION innodb_lock_wait_timeout = %s", (int(self._config.lock_wait_timeout),))
        finally:
            cur.close()
        return conn
