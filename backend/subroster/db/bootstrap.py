from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from subroster.db.base import Base
import subroster.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "substitutes": {"id", "is_active"},
    "schools": {"id", "replacement_after_days"},
    "availability_periods": {"id", "substitute_id", "date_start", "date_end", "is_active"},
    "recurrence_entries": {"id", "period_id", "weekday", "slot"},
    "specific_availabilities": {"id", "substitute_id", "date", "slot", "is_available"},
    "absences": {"id", "person_type", "staff_id", "substitute_id", "date_start", "date_end", "slot"},
    "assignments": {"id", "substitute_id", "school_id", "date_start", "date_end", "slot", "is_active"},
    "assignment_slot_claims": {"id", "assignment_id", "substitute_id", "day", "half"},
}


def inspect_schema(engine: Engine) -> dict[str, object]:
    """Report which engine tables/columns are missing; never raises for schema drift."""
    with engine.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
        missing_columns: dict[str, list[str]] = {}
        for table_name, required in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(required - existing)
            if missing:
                missing_columns[table_name] = missing
    return {"missing_tables": missing_tables, "missing_columns": missing_columns}


def create_missing_tables(engine: Engine) -> None:
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Schema bootstrap failed")
        raise RuntimeError("Schema bootstrap failed") from exc

    report = inspect_schema(engine)
    if report["missing_tables"] or report["missing_columns"]:
        raise RuntimeError(
            "Database schema is outdated. Run `alembic upgrade head` and restart backend. "
            f"Details: {report}"
        )
    logger.info("Database schema verified")
