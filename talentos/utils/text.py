import regex as re
from unidecode import unidecode

_sp = re.compile(r"\s+")


def normalize_text(s: str) -> str:
    if not s:
        return ""
    s = unidecode(str(s).lower())
    s = re.sub(r"[^a-z0-9\s\+\#\.\-_/@]", " ", s)  # mantem +, #, ., -, _, /, @
    s = _sp.sub(" ", s).strip()
    return s


def matches(term, *fields) -> bool:
    """Busca livre sem acento/caixa: termo vazio casa com tudo."""
    t = normalize_text(term)
    if not t:
        return True
    return any(t in normalize_text(f) for f in fields if f)


def initials(name: str) -> str:
    """'David Oliveira' -> 'DO' (no máximo duas letras)."""
    parts = [p for p in _sp.split((name or "").strip()) if p]
    return "".join(p[0] for p in parts)[:2].upper()


def split_list(value) -> list:
    """Aceita lista ou texto separado por vírgula (campos de formulário)."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = value
    return [str(i).strip() for i in items if i is not None and str(i).strip()]
