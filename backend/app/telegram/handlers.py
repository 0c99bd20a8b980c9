"""Telegram intake: contractors browse their required documents and upload files.

The webhook route feeds every update with a request-scoped SQLAlchemy
``session`` and the storage client, which aiogram hands to the handlers below
by parameter name.
"""

import logging
from typing import Optional

from aiogram import Bot, F, Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import CallbackQuery, LinkPreviewOptions, Message
from sqlalchemy.orm import Session

from app.config import settings
from app.crud.contractual import get_member_document, list_member_documents, set_document_url
from app.crud.telegram import (
    finish_upload,
    get_upload_session,
    link_chat,
    resolve_member,
    start_upload,
)
from app.services.storage import StorageClient, member_document_path
from app.telegram.keyboards import (
    GET_DOC_PREFIX,
    UPLOAD_DOC_PREFIX,
    build_documents_keyboard,
    build_upload_keyboard,
)
from app.texts import get_text
from shared.filenames import file_extension

logger = logging.getLogger(__name__)

router = Router(name="contractual")

UPLOAD_FOLDER = "contractualdocuments"


def _chat_id(message: Message) -> str:
    return str(message.chat.id)


def _member_for(session: Session, chat_id: str) -> Optional[str]:
    return resolve_member(session, chat_id, settings.telegram_default_contract_member_id)


def _owned_document(session: Session, chat_id: str, document_id: str) -> Optional[dict]:
    """The document when it belongs to the member this chat resolves to."""
    member_id = _member_for(session, chat_id)
    if not member_id:
        return None
    document = get_member_document(session, document_id)
    if document is None or document["contract_member_id"] != member_id:
        return None
    return document


async def send_documents(message: Message, session: Session) -> None:
    member_id = _member_for(session, _chat_id(message))
    if not member_id:
        await message.answer(get_text("bot.link.required"))
        return
    try:
        documents = list_member_documents(session, member_id)
    except Exception:
        logger.exception("Failed to list documents for member %s", member_id)
        await message.answer(get_text("bot.documents.error"))
        raise
    if not documents:
        await message.answer(get_text("bot.documents.empty"))
        return
    await message.answer(
        get_text("bot.documents.prompt"),
        reply_markup=build_documents_keyboard(documents),
    )


@router.message(Command("test"))
async def test_command(message: Message) -> None:
    await message.answer(get_text("bot.test.ok"))


@router.message(CommandStart())
async def start_command(message: Message, command: CommandObject, session: Session) -> None:
    member_id = (command.args or "").strip()
    if not member_id:
        await send_documents(message, session)
        return
    if not link_chat(session, _chat_id(message), member_id):
        await message.answer(get_text("bot.link.unknown"))
        return
    logger.info("Linked chat %s to member %s", _chat_id(message), member_id)
    await message.answer(get_text("bot.link.ok"))


@router.message(Command("cancel"))
async def cancel_command(message: Message, session: Session) -> None:
    if finish_upload(session, _chat_id(message)):
        await message.answer(get_text("bot.upload.cancelled"))
    else:
        await message.answer(get_text("bot.upload.nothing"))


@router.callback_query(F.data.startswith(GET_DOC_PREFIX))
async def show_document(callback: CallbackQuery, session: Session) -> None:
    document_id = callback.data[len(GET_DOC_PREFIX):]
    try:
        document = _owned_document(session, str(callback.message.chat.id), document_id)
    except Exception:
        logger.exception("Failed to load document %s", document_id)
        await callback.message.answer(get_text("bot.document.error"))
        await callback.answer()
        raise

    if document is None:
        await callback.message.answer(get_text("bot.document.error"))
    else:
        name = document.get("name") or get_text("bot.document.default_name")
        if document.get("url"):
            text = get_text("bot.document.link", name=name, url=document["url"])
        else:
            text = get_text("bot.document.missing", name=name)
        await callback.message.answer(
            text,
            parse_mode=ParseMode.MARKDOWN,
            link_preview_options=LinkPreviewOptions(is_disabled=True),
            reply_markup=build_upload_keyboard(document_id),
        )
    await callback.answer()


@router.callback_query(F.data.startswith(UPLOAD_DOC_PREFIX))
async def request_upload(callback: CallbackQuery, session: Session) -> None:
    document_id = callback.data[len(UPLOAD_DOC_PREFIX):]
    document = _owned_document(session, str(callback.message.chat.id), document_id)
    if document is None:
        logger.warning("Chat %s asked to upload document %s it does not own", callback.message.chat.id, document_id)
        await callback.message.answer(get_text("bot.document.error"))
        await callback.answer()
        return
    start_upload(session, str(callback.message.chat.id), document["contract_member_id"], document_id)
    name = document.get("name") or get_text("bot.document.default_name")
    await callback.message.answer(
        get_text("bot.upload.prompt", name=name), parse_mode=ParseMode.MARKDOWN
    )
    await callback.answer()


@router.message(F.document | F.photo)
async def receive_file(message: Message, bot: Bot, session: Session, storage: StorageClient) -> None:
    chat_id = _chat_id(message)
    upload = get_upload_session(session, chat_id)
    if upload is None:
        await send_documents(message, session)
        return

    document = get_member_document(session, upload["contractual_document_id"])
    if document is None:
        finish_upload(session, chat_id)
        await message.answer(get_text("bot.document.error"))
        return

    if message.document is not None:
        file_id = message.document.file_id
        file_name = message.document.file_name or ""
        content_type = message.document.mime_type or "application/octet-stream"
    else:
        file_id = message.photo[-1].file_id
        file_name = "photo.jpg"
        content_type = "image/jpeg"

    name = document.get("name") or get_text("bot.document.default_name")
    key = " ".join(part for part in (name, document.get("month")) if part)
    path = f"{member_document_path(UPLOAD_FOLDER, upload['contract_member_id'], key)}.{file_extension(file_name)}"
    try:
        buffer = await bot.download(file_id)
        url = storage.upload(path, buffer.read(), content_type)
    except Exception:
        logger.exception("Telegram upload failed for chat %s", chat_id)
        await message.answer(get_text("bot.upload.failed"))
        raise

    set_document_url(session, document["id"], url)
    finish_upload(session, chat_id)
    logger.info("Stored Telegram upload for document %s at %s", document["id"], path)
    await message.answer(get_text("bot.upload.done", name=name), parse_mode=ParseMode.MARKDOWN)


@router.message(F.text)
async def any_text(message: Message, session: Session) -> None:
    await send_documents(message, session)
