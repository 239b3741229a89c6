"""Input checks shared by the department mutation services."""

from decimal import Decimal, InvalidOperation

from deptsync.core.exceptions import ValidationError


def require_choice(value, allowed, field):
    """Upper-case ``value`` and check it against ``allowed``."""
    normalized = (value or "").strip().upper()
    if normalized not in allowed:
        raise ValidationError(
            f"Invalid {field}: {value!r}",
            details={field: f"must be one of {', '.join(sorted(allowed))}"},
        )
    return normalized


def require_text(data, field, max_length=200):
    value = (data.get(field) or "").strip()
    if not value:
        raise ValidationError(f"{field} is required", details={field: "required"})
    if len(value) > max_length:
        raise ValidationError(
            f"{field} is too long", details={field: f"max {max_length} characters"},
        )
    return value


def positive_int(value, field, default=1):
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", details={field: "integer"})
    if number < 1:
        raise ValidationError(f"{field} must be at least 1", details={field: ">= 1"})
    return number


def non_negative_amount(value, field):
    if value is None or value == "":
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number", details={field: "number"})
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", details={field: "number"})
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", details={field: ">= 0"})
    return amount
