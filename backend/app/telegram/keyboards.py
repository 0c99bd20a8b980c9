from typing import Iterable, Mapping

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from app.texts import get_text

GET_DOC_PREFIX = "GET_DOC_"
UPLOAD_DOC_PREFIX = "UPLOAD_DOC_"


def document_label(document: Mapping) -> str:
    name = document.get("name") or get_text("bot.document.default_name")
    month = document.get("month")
    return f"{name} ({month})" if month else name


def build_documents_keyboard(documents: Iterable[Mapping]) -> InlineKeyboardMarkup:
    rows = [
        [
            InlineKeyboardButton(
                text=document_label(document),
                callback_data=f"{GET_DOC_PREFIX}{document['id']}",
            )
        ]
        for document in documents
    ]
    return InlineKeyboardMarkup(inline_keyboard=rows)


def build_upload_keyboard(document_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text=get_text("bot.document.upload_button"),
                    callback_data=f"{UPLOAD_DOC_PREFIX}{document_id}",
                )
            ]
        ]
    )
