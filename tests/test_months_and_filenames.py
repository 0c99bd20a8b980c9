from datetime import date

from shared.filenames import file_extension, sanitize_file_name, sanitize_storage_name
from shared.months import (
    UNASSIGNED_MONTH,
    month_label,
    month_sort_key,
    months_between,
    parse_month_label,
)


def test_month_label_and_parse() -> None:
    assert month_label(date(2025, 1, 15)) == "enero 2025"
    assert parse_month_label("Marzo 2024") == (2024, 3)
    assert parse_month_label("marzo") == (0, 3)
    assert parse_month_label("otro 2024") is None
    assert parse_month_label("") is None


def test_month_sort_key_orders_chronologically_and_unknown_last() -> None:
    labels = [UNASSIGNED_MONTH, "febrero 2025", "diciembre 2024", "enero 2025"]
    assert sorted(labels, key=month_sort_key) == [
        "diciembre 2024",
        "enero 2025",
        "febrero 2025",
        UNASSIGNED_MONTH,
    ]


def test_months_between_crosses_year_boundary() -> None:
    assert list(months_between(date(2024, 11, 20), date(2025, 2, 1))) == [
        "noviembre 2024",
        "diciembre 2024",
        "enero 2025",
        "febrero 2025",
    ]
    assert list(months_between(date(2025, 3, 1), date(2025, 3, 31))) == ["marzo 2025"]
    assert list(months_between(date(2025, 3, 1), date(2025, 1, 1))) == []


def test_sanitize_file_name() -> None:
    assert sanitize_file_name("Cédula  Año.pdf") == "cedula_ano_pdf"
    assert sanitize_file_name("__RUT (2025)__") == "rut_2025"


def test_sanitize_storage_name() -> None:
    assert sanitize_storage_name(" Contrato Final v2.pdf ") == "contrato-final-v2.pdf"
    assert sanitize_storage_name("a/b?c") == "abc"


def test_file_extension() -> None:
    assert file_extension("scan.PNG") == "png"
    assert file_extension("noext") == "pdf"
    assert file_extension("", default="png") == "png"
