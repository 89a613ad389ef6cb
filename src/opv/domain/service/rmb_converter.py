"""Spell an RMB amount in capitalised Chinese numerals (大写金额).

Used for the ``total_amount_rmb`` field of every order version, which UIs
print verbatim on quotes and invoices.  Pure and stateless.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from opv.domain.exceptions import ValidationError

DIGITS = "零壹贰叁肆伍陆柒捌玖"
UNITS = ("", "拾", "佰", "仟")
BIG_UNITS = ("", "万", "亿", "万亿")
ZERO = "零"
PREFIX = "人民币"
NEGATIVE = "负"

_GROUP = 10000
_MAX_INTEGER = _GROUP ** len(BIG_UNITS) - 1


def convert_to_rmb(amount: Decimal | int | float | str, show_prefix: bool = False) -> str:
    """Return ``amount`` as e.g. ``壹佰元整`` or ``负伍拾元伍角``.

    Cents are rounded half-up from the fractional part.  Amounts of one
    万亿 group and above (10**16) are rejected.
    """
    value = _to_decimal(amount)

    negative = value < 0
    magnitude = abs(value)
    integer_part = int(magnitude)
    cents = int(
        ((magnitude - integer_part) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )
    if cents == 100:
        integer_part += 1
        cents = 0

    if integer_part > _MAX_INTEGER:
        raise ValidationError(f"Amount {amount} is too large to spell out")

    result = ""
    if integer_part > 0:
        result += _convert_integer(integer_part) + "元"

    decimal_words = _convert_cents(cents)
    if decimal_words:
        result += decimal_words
    elif integer_part > 0:
        result += "整"

    if not result:
        result = "零元整"
    elif negative:
        result = NEGATIVE + result

    if show_prefix:
        result = PREFIX + result
    return result


def _to_decimal(amount: Decimal | int | float | str) -> Decimal:
    if amount is None or isinstance(amount, bool):
        raise ValidationError(f"Invalid amount: {amount!r}")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValidationError(f"Invalid amount: {amount!r}")
    return value


def _convert_group(number: int) -> str:
    """Render 0..9999; leading zeros vanish, inner runs of zeros become one 零."""
    if number == 0:
        return ""
    parts: list[str] = []
    for position, char in enumerate(f"{number:04d}"):
        digit = int(char)
        if digit == 0:
            if parts and parts[-1] != ZERO:
                parts.append(ZERO)
        else:
            parts.append(DIGITS[digit] + UNITS[3 - position])
    return "".join(parts).rstrip(ZERO)


def _convert_integer(number: int) -> str:
    parts: list[str] = []
    unit_index = 0
    while number > 0:
        number, group = divmod(number, _GROUP)
        words = _convert_group(group)
        if words:
            parts.insert(0, words + BIG_UNITS[unit_index])
        elif unit_index > 0 and parts and parts[0] != ZERO:
            parts.insert(0, ZERO)
        unit_index += 1
    return "".join(parts).rstrip(ZERO)


def _convert_cents(cents: int) -> str:
    jiao, fen = divmod(cents, 10)
    words = ""
    if jiao:
        words += DIGITS[jiao] + "角"
    if fen:
        words += DIGITS[fen] + "分"
    return words
