import re


_SECRET_REFERENCE = re.compile(r"\{\{resolve:secretsmanager:[^}]*\}\}")

_TOKEN_PATTERNS = [
    re.compile(r"(Authorization\s*:\s*)([^\n\r]+)", re.IGNORECASE),
    re.compile(r"(Bearer\s+)\S+", re.IGNORECASE),
    re.compile(r"(oauth_?token=)[^&\s]+", re.IGNORECASE),
    re.compile(r"(token=)[^&\s]+", re.IGNORECASE),
    re.compile(r"\b(gh[pousr]_)[A-Za-z0-9]{20,}"),
]


def redact_secret_reference(value: str) -> str:
    return _SECRET_REFERENCE.sub("{{resolve:secretsmanager:[REDACTED]}}", value)


def redact_text(value: str) -> str:
    if not value:
        return value
    redacted = redact_secret_reference(value)
    for pattern in _TOKEN_PATTERNS:
        redacted = pattern.sub(r"\1[REDACTED]", redacted)
    return redacted
