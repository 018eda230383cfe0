import enum

from sqlalchemy import Enum as SAEnum


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)


class ProjectType(str, enum.Enum):
    CORN = "corn"
    CASSAVA = "cassava"
    CATTLE = "cattle"
    POULTRY = "poultry"
    HORTICULTURE = "horticulture"
    OTHER = "other"


class DocumentType(str, enum.Enum):
    BILHETE_IDENTIDADE = "bilhete_identidade"
    DECLARACAO_SOBA = "declaracao_soba"
    DECLARACAO_ADMINISTRACAO_MUNICIPAL = "declaracao_administracao_municipal"
    COMPROVATIVO_ACTIVIDADE_AGRICOLA = "comprovativo_actividade_agricola"
    ATESTADO_RESIDENCIA = "atestado_residencia"
    OUTROS = "outros"


class UserType(str, enum.Enum):
    FARMER = "farmer"
    COMPANY = "company"
    COOPERATIVE = "cooperative"
    FINANCIAL_INSTITUTION = "financial_institution"
    ADMIN = "admin"


def enum_column(enum_cls: type[enum.Enum]) -> SAEnum:
    """String-backed column type storing the member values (not names)."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=40,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
