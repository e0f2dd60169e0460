"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LIST_LIMIT = 200
ADMIN_LIST_LIMIT = 500
DEFAULT_LOCK_WAIT_SECONDS = 5
DEFAULT_MYSQL_PORT = 3306

# MySQL server error codes
ER_DUP_ENTRY = 1062
ER_LOCK_WAIT_TIMEOUT = 1205
ER_LOCK_DEADLOCK = 1213
