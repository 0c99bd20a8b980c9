import re
import unicodedata


_ACCENT_MAP = str.maketrans(
    {
        "á": "a",
        "ä": "a",
        "à": "a",
        "â": "a",
        "ã": "a",
        "é": "e",
        "ë": "e",
        "è": "e",
        "ê": "e",
        "í": "i",
        "ï": "i",
        "ì": "i",
        "î": "i",
        "ó": "o",
        "ö": "o",
        "ò": "o",
        "ô": "o",
        "õ": "o",
        "ú": "u",
        "ü": "u",
        "ù": "u",
        "û": "u",
        "ñ": "n",
        "ç": "c",
    }
)


def sanitize_file_name(name: str) -> str:
    """Storage-safe key for document uploads: ``"Cédula Año.pdf"`` -> ``"cedula_ano_pdf"``."""
    text = (name or "").lower().translate(_ACCENT_MAP)
    # Anything the map above missed still loses its combining marks.
    text = unicodedata.normalize("NFKD", text)
    text = "".join(char for char in text if not unicodedata.combining(char))
    text = re.sub(r"[^a-z0-9]", "_", text)
    text = re.sub(r"_+", "_", text)
    return text.strip("_")


def sanitize_storage_name(name: str) -> str:
    """Looser variant used for drafts and extensions; keeps dots and dashes."""
    text = (name or "").strip().lower()
    text = re.sub(r"[^\w\s.-]", "", text)
    return re.sub(r"\s+", "-", text)


def file_extension(name: str, default: str = "pdf") -> str:
    if not name or "." not in name:
        return default
    ext = name.rsplit(".", 1)[-1].strip().lower()
    return ext or default
