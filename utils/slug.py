import re
import unicodedata

MAX_SLUG_LENGTH = 80


def normalize_slug(value: str) -> str:
    """ASCII, lowercase, words joined by single hyphens. "Rosé World!" -> "rose-world"."""
    if not value:
        return ""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii").lower()
    value = re.sub(r"[^a-z0-9]+", "-", value).strip("-")

    return value[:MAX_SLUG_LENGTH].rstrip("-")
