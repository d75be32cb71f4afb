from typing import Optional

from sqlalchemy.exc import IntegrityError

FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"


def _message(error: IntegrityError) -> str:
    return str(error.orig if error.orig is not None else error).lower()


def _sqlstate(error: IntegrityError) -> Optional[str]:
    """Код SQLSTATE драйверов PostgreSQL (asyncpg, psycopg); у SQLite его нет"""
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_foreign_key_violation(error: IntegrityError) -> bool:
    sqlstate = _sqlstate(error)
    if sqlstate:
        return sqlstate == FOREIGN_KEY_VIOLATION
    return "foreign key" in _message(error)


def is_slug_violation(error: IntegrityError) -> bool:
    """UNIQUE-нарушение по timeline.slug; имя индекса ix_timeline_slug входит в текст ошибки"""
    message = _message(error)
    sqlstate = _sqlstate(error)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION and "slug" in message
    return "slug" in message and "unique" in message
