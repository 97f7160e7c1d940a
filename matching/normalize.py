import phonenumbers

# --------- helpers ---------
MIN_PHONE_DIGITS = 10  # shorter numbers are partial and match too much


def _norm_str(x) -> str:
    return str(x).strip() if isinstance(x, str) else ""


def _norm_lower(x) -> str:
    return _norm_str(x).lower()


def normalize_email(email) -> str:
    """Trim + lowercase. '' means absent and never matches."""
    return _norm_lower(email)


def normalize_phone(phone) -> str:
    """
    Keep digits only:
      '(555) 123-4567' -> '5551234567'
      '+1 555.123.4567' -> '15551234567'
    """
    s = _norm_str(phone)
    if not s:
        return ""
    return phonenumbers.normalize_digits_only(s)


def matchable_phone(phone) -> str:
    """Normalized phone, or '' when too short to be used for matching."""
    digits = normalize_phone(phone)
    return digits if len(digits) >= MIN_PHONE_DIGITS else ""


def normalize_name(name) -> str:
    return _norm_str(name)


def name_key(name) -> str:
    """Case-insensitive comparison key for stored vs. candidate names."""
    return normalize_name(name).casefold()
