from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Rows travel as snake_case in Python and camelCase over the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SignUpRequest(CamelModel):
    email: str
    password: str = Field(min_length=6)
    username: str = Field(min_length=1)


class SignInRequest(CamelModel):
    email: str
    password: str


class RecoverPasswordRequest(CamelModel):
    email: str
    redirect_to: Optional[str] = None


class SessionOut(CamelModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user_id: Optional[str] = None


class MessageOut(CamelModel):
    success: bool
    message: str


class UserOut(CamelModel):
    id: str
    username: Optional[str] = None
    email: str


class UserExistsOut(CamelModel):
    exists: bool
    user: Optional[UserOut] = None


class OrganizationOut(CamelModel):
    id: str
    name: str
    user_id: str
    contracts_limit: Optional[int] = None
    logo_url: Optional[str] = None
    pseudoname: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectOut(CamelModel):
    id: str
    name: str
    organization_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class ProjectCreate(CamelModel):
    name: str = Field(min_length=1)
    organization_id: str


class RenameRequest(CamelModel):
    name: str = Field(min_length=1)

    @field_validator("name", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class ProjectSignatureOut(CamelModel):
    signature: Optional[str] = None


class ContratanteDataOut(CamelModel):
    contratante_data: Dict[str, Any] = Field(default_factory=dict)


class StageCount(CamelModel):
    project_id: str
    project_name: str
    members: int


class StageBarOut(CamelModel):
    limit: Optional[int] = None
    used: int
    projects: List[StageCount]


class ContractOut(CamelModel):
    id: str
    name: str
    project_id: str
    contract_draft_url: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ContractCreate(CamelModel):
    name: str = Field(min_length=1)
    contract_draft_url: Optional[str] = None


class DraftUrlUpdate(CamelModel):
    contract_draft_url: str


class TemplateOut(CamelModel):
    id: str
    name: str
    category: Optional[str] = None


class DocgenDocumentCreate(CamelModel):
    template_id: str
    title: Optional[str] = None


class DocgenDocumentOut(CamelModel):
    id: str
    template_id: Optional[str] = None
    title: Optional[str] = None
    url: str


DocumentType = Literal["precontractual", "contractual"]


class RequiredDocumentOut(CamelModel):
    id: str
    contract_id: str
    name: str
    type: str
    due_date: Optional[date] = None
    template_id: Optional[str] = None


class RequiredDocumentCreate(CamelModel):
    name: str = Field(min_length=1)
    type: DocumentType
    due_date: Optional[date] = None
    template_id: Optional[str] = None


class InvitationCreate(CamelModel):
    user_id: str
    contract_id: str
    value: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class InvitationOut(CamelModel):
    id: str
    contract_id: str
    contract_name: Optional[str] = None
    user_id: str
    email: Optional[str] = None
    status: str
    invited_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    value: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    signed: bool = False


class InvitationResult(CamelModel):
    invitation: InvitationOut
    email_sent: bool
    document_processed: bool


class MemberDocumentOut(CamelModel):
    required_document_id: str
    name: str
    type: str
    contractual_document_id: Optional[str] = None
    url: Optional[str] = None
    month: Optional[str] = None


class MemberDocumentsOut(CamelModel):
    member_id: str
    user_id: str
    email: Optional[str] = None
    contract_id: str
    contract_name: str
    documents: List[MemberDocumentOut]


class ContractualDocumentOut(CamelModel):
    id: str
    name: str
    url: Optional[str] = None
    type: str
    month: Optional[str] = None
    template_id: Optional[str] = None
    required_document_id: Optional[str] = None
    contractual_document_id: Optional[str] = None


class DocumentGroupOut(CamelModel):
    month: str
    docs: List[ContractualDocumentOut]


class PrecontractualDocumentOut(CamelModel):
    id: str
    name: str
    type: str
    due_date: Optional[date] = None
    template_id: Optional[str] = None
    url: Optional[str] = None
    contractual_document_id: Optional[str] = None


class ExtraDocumentCreate(CamelModel):
    name: str = Field(min_length=1)
    month: str = Field(min_length=1)


class ExtensionOut(CamelModel):
    id: str
    contract_member_id: str
    extension_start_date: date
    extension_end_date: date
    extension_url: Optional[str] = None
    created_at: Optional[datetime] = None


class ExtensionResult(CamelModel):
    extension: ExtensionOut
    created_documents: int


class MemberDatesOut(CamelModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class LegalStatusOut(CamelModel):
    status_juridico: Optional[str] = None


class SignedUrlOut(CamelModel):
    url: str


class ContractStatusOut(CamelModel):
    precontractual: bool
    signed: bool
    contractual: bool


class PendingContractOut(CamelModel):
    id: str
    contract_id: str
    contract_name: Optional[str] = None
    contract_draft_url: Optional[str] = None
    status: str
    value: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    signed: bool = False
    invited_at: Optional[datetime] = None


class ContractorDashboardOut(CamelModel):
    contracts: List[PendingContractOut]
    signature: Optional[str] = None


class ContractFullDataOut(CamelModel):
    member: PendingContractOut
    sections: Optional[Dict[str, Any]] = None
    contract_url: Optional[str] = None
    status: ContractStatusOut


class UserDocument(CamelModel):
    # Keys match the identity card labels used inside contract tables.
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    nombre: Optional[str] = Field(default=None, alias="NOMBRE")
    telefono: Optional[str] = Field(default=None, alias="TELEFONO")
    direccion: Optional[str] = Field(default=None, alias="DIRECCIÓN")
    identificacion: Optional[str] = Field(default=None, alias="IDENTIFICACIÓN")


class UserDataOut(CamelModel):
    user_data: Dict[str, Any] = Field(default_factory=dict)
    user_signature: Optional[str] = None
    is_data_complete: bool


class ContractSignRequest(CamelModel):
    role: Optional[str] = None
    contract_member_id: str
    user_id: Optional[str] = None
    user_data: Dict[str, Any] = Field(default_factory=dict)
    user_signature: Optional[str] = None


class ContractObjectRequest(BaseModel):
    # Field names follow the public form payload.
    objetoParafraseado: Optional[str] = None
    nombreContrato: Optional[str] = None


class ResignationOut(CamelModel):
    url: str
    status: str


class ContactRequest(CamelModel):
    name: Optional[str] = None
    company: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    message: Optional[str] = None
