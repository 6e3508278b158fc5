import re
import unicodedata

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Return a lowercase, ASCII, hyphen-separated slug for *text* (may be empty)."""
    ascii_text = (
        unicodedata.normalize("NFKD", text)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    return _NON_ALNUM_RE.sub("-", ascii_text.lower()).strip("-")


def derive_slug(title: str, fallback: str) -> str:
    """Slug for *title*, or *fallback* (the sequence id) when nothing survives normalisation."""
    return slugify(title) or fallback
