"""Display-safe redaction of secret values."""

MASK = "****"
MAX_VISIBLE = 4
VISIBLE_RATIO = 0.2


def mask_value(value: str) -> str:
    """Return a masked representation of ``value``.

    Values of four characters or fewer become ``****``. Longer values keep
    at most a small prefix (20% of the length, capped at four characters)
    followed by at least four asterisks.
    """
    if len(value) <= len(MASK):
        return MASK
    visible = min(MAX_VISIBLE, int(len(value) * VISIBLE_RATIO))
    return value[:visible] + "*" * max(len(MASK), len(value) - visible)
