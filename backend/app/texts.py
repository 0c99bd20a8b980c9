"""User-facing strings. The product is Spanish-only."""

TEXTS = {
    "bot.test.ok": "✅ Bot is working correctly!",
    "bot.documents.empty": "No tienes documentos requeridos aún.",
    "bot.documents.prompt": "Selecciona el documento que deseas consultar:",
    "bot.documents.error": "❌ Error consultando documentos.",
    "bot.document.error": "❌ Error al obtener el documento.",
    "bot.document.missing": "❗️El documento *{name}* aún no ha sido subido.",
    "bot.document.link": "✅ *{name}*\n[Ver documento]({url})",
    "bot.document.default_name": "Documento",
    "bot.document.upload_button": "📤 Subir documento",
    "bot.upload.prompt": "Envía el archivo para *{name}* o escribe /cancel para cancelar.",
    "bot.upload.done": "✅ Documento *{name}* recibido.",
    "bot.upload.failed": "❌ No se pudo guardar el documento. Intenta de nuevo.",
    "bot.upload.cancelled": "Carga cancelada.",
    "bot.upload.nothing": "No hay ninguna carga pendiente.",
    "bot.link.ok": "✅ Chat vinculado. Escribe cualquier mensaje para ver tus documentos.",
    "bot.link.unknown": "❌ Código de contrato no válido.",
    "bot.link.required": "Usa el enlace de invitación para vincular este chat a tu contrato.",
    "sign.missing_signature": "Debe crear primero su firma en la sección contractual de papeleo.co",
    "sign.ok": "Contrato firmado exitosamente",
    "sign.error": "Error al firmar el contrato",
    "sign.unexpected": "Ocurrió un error inesperado durante el proceso de firma",
    "sign.server_error": "Error en el servidor de firma",
    "sign.no_contract": "No hay contrato para actualizar",
    "sign.incomplete_data": "Debe completar su información personal antes de firmar",
    "sign.contratante.missing_signature": "El proyecto no tiene una firma registrada",
    "sign.contratante.forbidden": "No tiene permisos para firmar este contrato",
    "sign.contratante.ok": "Contrato firmado por el contratante",
    "contract.updated": "Contrato actualizado correctamente",
    "invitation.subject": "Invitación para el proyecto: {name}",
    "contact.subject": "Nueva consulta de {company}",
    "verify.ok": "Document verified successfully",
    "verify.mismatch": "Document does not match the expected type",
    "ps_contract.ok": "Tabla de contrato y objeto contractual creados exitosamente en Google Docs",
    "ps_contract.missing_object": "Se requiere el objeto parafraseado para generar el contrato",
    "ps_contract.auth_error": (
        "Error de autenticación o permisos. Verifica que la cuenta de servicio tenga acceso al documento."
    ),
    "ps_contract.error": "Error al crear la tabla en Google Docs",
    "month.unassigned": "Sin mes asignado",
    "document.unnamed": "Documento sin nombre",
}


def get_text(key: str, **kwargs) -> str:
    template = TEXTS.get(key, key)
    if kwargs:
        return template.format(**kwargs)
    return template
