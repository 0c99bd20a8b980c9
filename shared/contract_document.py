"""Merge helpers for docgen contract documents.

A docgen document is stored as a mapping of section title to a section
payload whose ``content`` is an HTML fragment::

    {
        "0. GENERALIDADES": {"content": "<table>...</table>", "type": "text"},
        "1. CLAUSULAS": {...},
        "2. FIRMAS": {"content": "... <hr style='width: 150px;'> ..."},
    }

Every helper returns a new mapping and leaves its input untouched.
"""

from __future__ import annotations

import copy
import json
import re
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Union

GENERAL_SECTION = "0. GENERALIDADES"
SIGNATURES_SECTION = "2. FIRMAS"
SIGNATURE_SLOT = "<hr style='width: 150px;'>"
DOCGEN_URL_RE = re.compile(r"^https://papeleo\.co/docgen/[\w-]+$")

USER_DATA_FIELDS = ("NOMBRE", "TELEFONO", "DIRECCIÓN", "IDENTIFICACIÓN")

Sections = Dict[str, Dict[str, Any]]
DateLike = Union[date, datetime]


def _placeholder_row(label: str, placeholder: str) -> re.Pattern:
    return re.compile(
        r"<tr>\s*<td><b>"
        + re.escape(label)
        + r"</b></td>\s*<td><span style='color:red;'>"
        + re.escape(placeholder)
        + r"</span></td>\s*</tr>"
    )


def _red_row(label: str, value: str) -> str:
    return f"<tr><td><b>{label}</b></td><td><span style='color:red;'>{value}</span></td></tr>"


_VALUE_ROW = _placeholder_row("VALOR TOTAL DEL CONTRATO", "$")
_NAME_ROW = _placeholder_row("NOMBRE DEL CONTRATISTA", "NOMBRE DEL CONTRATISTA")
_ID_ROW = _placeholder_row("IDENTIFICACIÓN CONTRATISTA", "IDENTIFICACIÓN")
_TERM_ROW = _placeholder_row("PLAZO", "PLAZO")

_CONTRACTOR_BLOCK = re.compile(
    r"<tr><td><b>NOMBRE DEL CONTRATISTA</b></td><td><span style='color:red;'>.*?</span></td></tr>"
    r"\s*<tr><td><b>IDENTIFICACIÓN CONTRATISTA</b></td><td><span style='color:red;'>.*?</span></td></tr>"
    r"\s*<tr>\s*<td><b>DIRECCIÓN DEL CONTRATISTA</b></td>\s*<td><span style='color:red;'>.*?</span></td>\s*</tr>"
    r"\s*<tr>\s*<td><b>TELÉFONO CONTRATISTA</b></td>\s*<td><span style='color:red;'>.*?</span></td>\s*</tr>"
)


def is_docgen_url(url: Optional[str], prefix: str = "https://papeleo.co/docgen") -> bool:
    return bool(url) and str(url).startswith(prefix)


def is_exact_docgen_url(url: Optional[str]) -> bool:
    """True for ``https://papeleo.co/docgen/<id>`` and nothing else."""
    return bool(url) and DOCGEN_URL_RE.match(str(url)) is not None


def docgen_document_id(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    tail = str(url).rstrip("/").split("/")[-1]
    return tail.split("?")[0] or None


def docgen_view_url(url: str, member_id: str, sidebar: bool = False) -> str:
    """Docgen link that opens the member's merged copy instead of the template."""
    sep = "&" if "?" in url else "?"
    view = f"{url}{sep}contractMemberId={member_id}"
    if sidebar:
        view += "&sidebar=true"
    return view


def format_short_date(value: Optional[DateLike]) -> str:
    """``dd/mm/yy``; empty string when no date is known."""
    if value is None:
        return ""
    return f"{value.day:02d}/{value.month:02d}/{value.year % 100:02d}"


def format_long_date(value: Optional[DateLike]) -> str:
    if value is None:
        return ""
    return f"{value.day}/{value.month}/{value.year}"


def parse_identity_document(raw: Any) -> Dict[str, Any]:
    """Users keep their identity card as JSON; older rows stored it as text."""
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return {}
        try:
            parsed = json.loads(text)
        except ValueError:
            return {}
        return dict(parsed) if isinstance(parsed, dict) else {}
    return {}


def contractor_full_name(identity: Mapping[str, Any]) -> str:
    nombres = str(identity.get("nombres") or "").strip()
    apellidos = str(identity.get("apellidos") or "").strip()
    return f"{nombres} {apellidos}".strip()


def is_user_data_complete(user_data: Optional[Mapping[str, Any]]) -> bool:
    if not user_data:
        return False
    return all(user_data.get(field) for field in USER_DATA_FIELDS)


def _section_content(sections: Mapping[str, Any], title: str) -> Optional[str]:
    section = sections.get(title)
    if not isinstance(section, Mapping):
        return None
    content = section.get("content")
    return content if isinstance(content, str) else None


def _with_content(sections: Sections, title: str, content: str) -> Sections:
    merged = dict(sections)
    merged[title] = {**sections[title], "content": content}
    return merged


def merge_invitation_values(
    sections: Mapping[str, Any],
    value: Any,
    identity: Mapping[str, Any],
    end_date: Optional[DateLike] = None,
) -> Sections:
    """Fill the invitation rows of the general-data table.

    Only the first matching row of each kind is replaced and the value stays
    inside the red span, so the contractor can still spot what was filled in.
    """
    result: Sections = copy.deepcopy(dict(sections))
    content = _section_content(result, GENERAL_SECTION)
    if content is None:
        return result

    amount = "" if value is None else str(value)
    replacements = (
        (_VALUE_ROW, _red_row("VALOR TOTAL DEL CONTRATO", f"${amount}")),
        (_NAME_ROW, _red_row("NOMBRE DEL CONTRATISTA", contractor_full_name(identity))),
        (
            _ID_ROW,
            _red_row(
                "IDENTIFICACIÓN CONTRATISTA",
                str(identity.get("numero de identificación") or ""),
            ),
        ),
        (_TERM_ROW, _red_row("PLAZO", format_short_date(end_date))),
    )
    for pattern, row in replacements:
        content = pattern.sub(lambda _match, row=row: row, content, count=1)
    return _with_content(result, GENERAL_SECTION, content)


def replace_placeholders(
    sections: Mapping[str, Any],
    value: Any = None,
    end_date: Optional[DateLike] = None,
    email: Optional[str] = None,
) -> Sections:
    """Substitute ``${value}``, ``${endDate}`` and ``${userEmail}`` in every section.

    An empty value or a missing end date leaves its token in place.
    """
    result: Sections = copy.deepcopy(dict(sections))
    tokens = {"${userEmail}": email or ""}
    if value:
        tokens["${value}"] = str(value)
    if end_date:
        tokens["${endDate}"] = format_long_date(end_date)
    for title, section in result.items():
        if not isinstance(section, dict) or not isinstance(section.get("content"), str):
            continue
        content = section["content"]
        for token, replacement in tokens.items():
            content = content.replace(token, replacement)
        section["content"] = content
    return result


def signature_image(url: str) -> str:
    return f"<img src='{url}' style='max-width:150px'><br>"


def insert_signature(content: str, signature_url: str, last: bool = True) -> str:
    """Put a signature image where a signature line is drawn.

    The contratante signs on the last line, the contractor on the first.
    """
    index = content.rfind(SIGNATURE_SLOT) if last else content.find(SIGNATURE_SLOT)
    if index == -1:
        return content
    return content[:index] + signature_image(signature_url) + content[index + len(SIGNATURE_SLOT):]


def sign_sections(sections: Mapping[str, Any], signature_url: str, last: bool = True) -> Sections:
    result: Sections = copy.deepcopy(dict(sections))
    content = _section_content(result, SIGNATURES_SECTION)
    if content is None or not signature_url:
        return result
    return _with_content(result, SIGNATURES_SECTION, insert_signature(content, signature_url, last=last))


def fill_contractor_data(sections: Mapping[str, Any], user_data: Mapping[str, Any]) -> Sections:
    """Swap the red contractor rows for the values the contractor confirmed."""
    result: Sections = copy.deepcopy(dict(sections))
    content = _section_content(result, GENERAL_SECTION)
    if content is None:
        return result
    block = (
        f"<tr><td><b>NOMBRE DEL CONTRATISTA</b></td><td>{user_data.get('NOMBRE', '')}</td></tr> "
        f"<tr><td><b>IDENTIFICACIÓN CONTRATISTA</b></td><td>{user_data.get('IDENTIFICACIÓN', '')}</td></tr> "
        f"<tr> <td><b>DIRECCIÓN DEL CONTRATISTA</b></td> <td>{user_data.get('DIRECCIÓN', '')}</td> </tr> "
        f"<tr> <td><b>TELÉFONO CONTRATISTA</b></td> <td>{user_data.get('TELEFONO', '')}</td> </tr>"
    )
    content = _CONTRACTOR_BLOCK.sub(lambda _match: block, content)
    return _with_content(result, GENERAL_SECTION, content)
