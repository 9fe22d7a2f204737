from typing import Any


def get_api_error_message(payload: Any, fallback: str) -> str:
    """
    Extracts a human-readable message from an error response body.

    Looks at `message`, then `detail`, then `title` (problem-details), then
    the first string of the first list under `errors` (validation problem
    details). Falls back to `fallback`.
    """
    if isinstance(payload, dict):
        for key in ("message", "detail", "title"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value

        errors = payload.get("errors")
        if isinstance(errors, dict):
            first_list = next(
                (value for value in errors.values() if isinstance(value, list)), None
            )
            if first_list:
                first_error = next(
                    (value for value in first_list if isinstance(value, str)),
                    first_list[0],
                )
                if isinstance(first_error, str) and first_error.strip():
                    return first_error
    return fallback
