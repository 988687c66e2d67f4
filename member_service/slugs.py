import re
import unicodedata

_WS_RE = re.compile(r"\s+")
_INVALID_RE = re.compile(r"[^a-z0-9-]")


def derive_slug(name: str) -> str:
    """
    "José  Pérez" -> "jose-perez"
    Diacritics are stripped, periods dropped, whitespace runs become one hyphen.
    """
    s = unicodedata.normalize("NFKD", name or "")
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = s.lower().replace(".", "").strip()
    s = _WS_RE.sub("-", s)
    s = _INVALID_RE.sub("", s)
    return s.strip("-") or "member"


def next_free_slug(base: str, taken: set[str]) -> str:
    # collisions get a numeric suffix: ada-lovelace, ada-lovelace-2, ...
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"
