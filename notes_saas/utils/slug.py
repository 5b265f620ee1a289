import re
import unicodedata


def normalize_slug(value: str) -> str:
    """Fold a tenant reference into the stored slug shape (``acme``, ``globex-corp``)."""
    if not value:
        return ""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = value.strip().lower()
    value = re.sub(r"[^a-z0-9-]", "", value)

    return value.strip("-")
