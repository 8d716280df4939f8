from enum import Enum
from typing import Annotated
from typing import Any

from pydantic import BaseModel
from pydantic import BeforeValidator
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON with the browser while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _coerce_to_text(v: Any) -> Any:
    # The model sometimes answers fees and amounts as JSON numbers
    if isinstance(v, bool):
        return str(v).lower()
    if isinstance(v, int | float):
        return str(v)
    return v


FieldText = Annotated[str | None, BeforeValidator(_coerce_to_text)]


class ClientData(CamelModel):
    """Client identity fields. Every field is optional and free text."""

    full_name: FieldText = None
    dob: FieldText = None
    cin: FieldText = None
    address: FieldText = None
    bank_account: FieldText = None


class CaseData(CamelModel):
    """Case and fee fields. Every field is optional and free text."""

    type: FieldText = None
    references: FieldText = None
    fees: FieldText = None
    advance: FieldText = None
    costs: FieldText = None


class FormData(CamelModel):
    """Data the user verifies before generation: a partial client and a partial case."""

    client: ClientData = Field(default_factory=ClientData)
    case: CaseData = Field(default_factory=CaseData)

    @field_validator("client", "case", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class DocumentType(str, Enum):
    """The legal documents the wizard can draft. Values are the labels shown to the user."""

    FEE_AGREEMENT = "اتفاقية أتعاب محاماة"
    ADMIN_POWER_OF_ATTORNEY = "وكالة خاصة (إدارية/عقارية)"
    JUDICIAL_POWER_OF_ATTORNEY = "وكالة خاصة (قضائية)"
    GENERAL_POWER_OF_ATTORNEY = "وكالة عامة"
    INCIDENTAL_REQUEST = "طلب عرضية / مذكرة طلب"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def _missing_(cls, value: object) -> "DocumentType | None":
        # Accept member names too, e.g. "FEE_AGREEMENT"
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


class DocumentTypeInfo(BaseModel):
    name: str
    label: str


class GeneratedDocument(CamelModel):
    doc_type: DocumentType
    html_content: str


class UploadedFile(BaseModel):
    """The source document the user submitted, held in memory for the wizard session."""

    filename: str
    content_type: str | None = None
    content: bytes

    @property
    def extension(self) -> str:
        _, dot, ext = self.filename.rpartition(".")
        return f".{ext.lower()}" if dot else ""

    @property
    def size(self) -> int:
        return len(self.content)


STEP_LABELS: dict[str, str] = {
    "DOCUMENT_SELECT": "اختيار المستند",
    "FILE_UPLOAD": "رفع الملف",
    "DATA_VERIFICATION": "مراجعة البيانات",
    "PREVIEW": "معاينة وتصدير",
}


class WizardStep(str, Enum):
    DOCUMENT_SELECT = "DOCUMENT_SELECT"
    FILE_UPLOAD = "FILE_UPLOAD"
    DATA_VERIFICATION = "DATA_VERIFICATION"
    PREVIEW = "PREVIEW"

    @property
    def position(self) -> int:
        return list(WizardStep).index(self)

    @property
    def label(self) -> str:
        return STEP_LABELS[self.value]


class DocumentSelectionPayload(CamelModel):
    document_types: list[DocumentType]

    @field_validator("document_types", mode="before")
    @classmethod
    def accept_member_names(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [DocumentType(item) if isinstance(item, str) else item for item in v]
        return v


class WizardSnapshot(CamelModel):
    """Read-only view of the wizard state rendered by the front end."""

    step: WizardStep
    step_index: int
    steps: list[str] = Field(default_factory=lambda: [s.label for s in WizardStep])
    selected_document_types: list[DocumentType] = Field(default_factory=list)
    uploaded_filename: str | None = None
    form_data: FormData | None = None
    generated_documents: list[GeneratedDocument] = Field(default_factory=list)
    is_loading: bool = False
    loading_message: str = ""
    error: str | None = None
