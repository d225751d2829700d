from typing import Any, Dict, Iterable


def mask_value(value: Any) -> Any:
    """Mask emails and secrets before they reach a log line."""
    if not isinstance(value, str):
        return value
    if "@" in value:  # email
        name, _, domain = value.partition("@")
        return (name[:2] + "***@" + domain) if name else "***@" + domain
    if value.lower().startswith("bearer "):
        return "Bearer " + mask_value(value[7:])
    if len(value) > 12:
        return value[:4] + "..." + value[-4:]
    return "***"


def mask_fields(payload: Dict, keys: Iterable[str]) -> Dict:
    """Copy of ``payload`` with the given keys masked."""
    masked = dict(payload)
    for key in keys:
        if key in masked:
            masked[key] = mask_value(masked[key])
    return masked
