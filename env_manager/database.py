import os
import logging
import sqlite3
import threading

from jsonschema import validate, ValidationError as JsonSchemaValidationError

from env_manager.errors import ValidationError, NotFoundError, InfrastructureError

logger = logging.getLogger(__name__)

# Falsy JSON values count as missing; booleans and 0 are told apart by jsonschema
EMPTY_VALUES = [None, "", 0, False]

PRESENT_SCALAR = {
    "type": ["string", "number", "boolean"],
    "not": {"enum": EMPTY_VALUES},
}

ENV_VAR_SCHEMA = {
    "type": "object",
    "required": ["key", "value"],
    "properties": {
        "key": PRESENT_SCALAR,
        "value": PRESENT_SCALAR,
        "remark": {"type": ["string", "number", "boolean", "null"]},
    },
}

ENV_VAR_COLUMNS = "id, key, value, remark, created_at, updated_at"

# SQLite INTEGER is a signed 64-bit value
SQLITE_MIN_INTEGER = -2 ** 63
SQLITE_MAX_INTEGER = 2 ** 63 - 1


def _as_text(field):
    if isinstance(field, bool):
        return 'true' if field else 'false'
    return str(field)


def validate_env_var(key, value, remark=None):
    """Presence check for key/value; raises ValidationError.

    Returns the (key, value, remark) triple as stored text, remark defaulting to ''.
    """
    instance = {name: field for name, field in (('key', key), ('value', value), ('remark', remark))
                if field is not None}
    try:
        validate(instance=instance, schema=ENV_VAR_SCHEMA)
    except JsonSchemaValidationError as e:
        logger.debug(f"Rejected env var payload: {e.message}")
        if e.validator == 'type':
            raise ValidationError("Key, value and remark must be text or numbers")
        raise ValidationError("Key and value must not be empty")
    return _as_text(key), _as_text(value), _as_text(remark) if remark else ''


def _id_in_range(env_var_id):
    return SQLITE_MIN_INTEGER <= env_var_id <= SQLITE_MAX_INTEGER


class EnvVarManager:
    """A thread-safe store for environment variable records backed by a single SQLite connection."""
    def __init__(self, db_path='data/env_vars.db'):
        self.db_path = db_path
        self.lock = threading.Lock()
        if db_path != ':memory:' and os.path.dirname(db_path):
            self._prepare_data_dir(os.path.dirname(db_path))
        try:
            self.conn = sqlite3.connect(db_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise InfrastructureError(f"Could not open database {db_path}: {e}") from e
        self.conn.row_factory = sqlite3.Row
        try:
            self._initialize_db()
        except InfrastructureError:
            self.conn.close()
            raise

    @staticmethod
    def _prepare_data_dir(data_dir):
        os.makedirs(data_dir, exist_ok=True)
        # Containers may mount the directory with restrictive permissions
        try:
            os.chmod(data_dir, 0o755)
        except OSError as e:
            logger.warning(f"Could not set permissions on data directory {data_dir}: {e}")

    def _initialize_db(self):
        with self.lock:
            try:
                cursor = self.conn.cursor()

                # --- Create 'env_vars' table if it doesn't exist ---
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS env_vars (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        key TEXT NOT NULL,
                        value TEXT NOT NULL,
                        remark TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                # --- Safely Upgrade 'env_vars' table ---
                cursor.execute("PRAGMA table_info(env_vars)")
                columns = [info[1] for info in cursor.fetchall()]
                if 'remark' not in columns:
                    cursor.execute("ALTER TABLE env_vars ADD COLUMN remark TEXT")

                self.conn.commit()
            except sqlite3.Error as e:
                raise InfrastructureError(f"Could not initialize env_vars table: {e}") from e
        logger.info("Created or verified env_vars table")

    def _execute(self, sql, params=()):
        """Run a single statement, commit it and return all resulting rows."""
        with self.lock:
            if self.conn is None:
                raise InfrastructureError("Database connection is closed")
            try:
                cursor = self.conn.cursor()
                cursor.execute(sql, params)
                rows = cursor.fetchall()
                self.conn.commit()
                return rows
            except sqlite3.Error as e:
                logger.error(f"Database error running {sql.split()[0]}: {e}")
                raise InfrastructureError("Database operation failed") from e

    def list_env_vars(self):
        rows = self._execute(f"SELECT {ENV_VAR_COLUMNS} FROM env_vars ORDER BY id DESC")
        return [dict(row) for row in rows]

    def get_env_var(self, env_var_id):
        if not _id_in_range(env_var_id):
            return None
        rows = self._execute(f"SELECT {ENV_VAR_COLUMNS} FROM env_vars WHERE id = ?", (env_var_id,))
        return dict(rows[0]) if rows else None

    def create_env_var(self, key, value, remark=None):
        rows = self._execute(
            f"INSERT INTO env_vars (key, value, remark) VALUES (?, ?, ?) RETURNING {ENV_VAR_COLUMNS}",
            validate_env_var(key, value, remark),
        )
        return dict(rows[0])

    def update_env_var(self, env_var_id, key, value, remark=None):
        key, value, remark = validate_env_var(key, value, remark)
        if not _id_in_range(env_var_id):
            raise NotFoundError("Environment variable not found")
        rows = self._execute(
            f"UPDATE env_vars SET key = ?, value = ?, remark = ?, updated_at = CURRENT_TIMESTAMP "
            f"WHERE id = ? RETURNING {ENV_VAR_COLUMNS}",
            (key, value, remark, env_var_id),
        )
        if not rows:
            raise NotFoundError("Environment variable not found")
        return dict(rows[0])

    def delete_env_var(self, env_var_id):
        if not _id_in_range(env_var_id):
            raise NotFoundError("Environment variable not found")
        rows = self._execute("DELETE FROM env_vars WHERE id = ? RETURNING id", (env_var_id,))
        if not rows:
            raise NotFoundError("Environment variable not found")
        return rows[0]['id']

    def close(self):
        with self.lock:
            if self.conn is None:
                return
            try:
                self.conn.close()
            except sqlite3.Error as e:
                raise InfrastructureError(f"Error closing database: {e}") from e
            finally:
                self.conn = None
        logger.info("Closed SQLite database connection")
