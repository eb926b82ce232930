import re
from datetime import date

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def check_iso_date(value: object) -> object:
    """Reject anything that is not a YYYY-MM-DD string before pydantic parses it."""
    if value is None or isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    return value
