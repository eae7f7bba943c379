from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from services.errors import ValidationError


def parse_iso(dt_str, field="datetime"):
    # Expect ISO format like "2026-01-20T18:00:00"; aware values are stored as naive UTC
    if not isinstance(dt_str, str) or not dt_str.strip():
        raise ValidationError(f"{field} is required")
    try:
        value = datetime.fromisoformat(dt_str.strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use ISO e.g. 2026-01-20T18:00:00") from None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_date(date_str, field="date"):
    if date_str is None or date_str == "":
        return None
    if isinstance(date_str, date):
        return date_str
    try:
        return date.fromisoformat(str(date_str).strip())
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD") from None


# ids are 32-bit INTEGER columns
MAX_ID = 2147483647


def positive_int(value, field):
    if isinstance(value, bool):
        raise ValidationError(f"Valid {field} is required")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"Valid {field} is required") from None
    if not 0 < number <= MAX_ID or (isinstance(value, float) and value != number):
        raise ValidationError(f"Valid {field} is required")
    return number


def parse_price(value, field="price"):
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"Valid {field} is required")
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Valid {field} is required") from None
    if not price.is_finite() or price < 0:
        raise ValidationError(f"Valid {field} is required")
    return price.quantize(Decimal("0.01"))
