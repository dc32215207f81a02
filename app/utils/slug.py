import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def generate_slug(name: str) -> str:
    """'Chaise Élégante 2' -> 'chaise-elegante-2'"""
    decomposed = unicodedata.normalize("NFD", name)
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return _NON_ALNUM.sub("-", stripped.lower()).strip("-")
