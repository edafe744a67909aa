import re

_CONTROL_WHITESPACE = re.compile(r"[\r\n\t]+")
_REPEATED_WHITESPACE = re.compile(r"\s{2,}")


def sanitize_text(value: str) -> str:
    """Trim and collapse whitespace so free text is stored on one line."""
    return _REPEATED_WHITESPACE.sub(" ", _CONTROL_WHITESPACE.sub(" ", value.strip()))


def parse_tags(raw: str) -> list[str]:
    """Split a comma-separated tag field, dropping blanks."""
    return [tag for tag in (sanitize_text(part) for part in raw.split(",")) if tag]


def anonymize_email(email: str) -> str:
    """Mask the local part: ``jane.doe@x.org`` -> ``j***e@x.org``."""
    user, _, domain = email.partition("@")
    if not user or not domain:
        return email
    if len(user) <= 2:
        return f"{user[0]}***@{domain}"
    return f"{user[0]}***{user[-1]}@{domain}"
