"""
Sesión explícita {user, company}

Se construye una vez por request y se pasa explícitamente a servicios y clientes.
refresh() devuelve un nuevo valor en lugar de mutar el existente.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Optional, TYPE_CHECKING

from ..models.enums import StaffRole
from .common import parse_record

if TYPE_CHECKING:
    from ..clients.manager_api_client import ManagerApiClient


class SessionUser(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    company_user_id: str = Field(..., validation_alias=AliasChoices("companyUserId", "company_user_id"))
    role: StaffRole = StaffRole.UNKNOWN
    full_name: Optional[str] = Field(None, validation_alias=AliasChoices("fullName", "full_name"))
    email: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def parse_role(cls, value):
        return StaffRole(value) if isinstance(value, str) else value


class SessionCompany(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    slug: Optional[str] = None


class Session(BaseModel):
    """Contexto de la sesión del manager"""
    model_config = ConfigDict(frozen=True)

    user: SessionUser
    company: SessionCompany
    token: str = Field(..., exclude=True, repr=False)

    @classmethod
    def from_claims(cls, claims: dict, token: str) -> "Session":
        """Construir la sesión desde los claims del token de sesión"""
        return cls(
            user=SessionUser(
                id=str(claims["userId"]),
                company_user_id=str(claims["companyUserId"]),
                role=claims.get("role") or StaffRole.UNKNOWN,
            ),
            company=SessionCompany(id=str(claims["companyId"])),
            token=token,
        )

    @property
    def manager_id(self) -> str:
        return self.user.company_user_id

    def has_role(self, *roles: StaffRole) -> bool:
        return self.user.role in roles

    async def refresh(self, client: "ManagerApiClient") -> "Session":
        """
        Obtener una sesión nueva desde GET /api/auth/me

        Returns:
            Nueva instancia de Session; la actual no se modifica
        """
        payload = await client.get_me(self)
        user = parse_record(payload, "user", SessionUser) or self.user
        company = parse_record(payload, "company", SessionCompany) or self.company
        return Session(user=user, company=company, token=self.token)


class SessionResponse(BaseModel):
    """Schema para respuesta de sesión"""
    user: SessionUser
    company: SessionCompany

    class Config:
        json_schema_extra = {
            "example": {
                "user": {
                    "id": "u-1",
                    "company_user_id": "cu-1",
                    "role": "manager",
                    "full_name": "Nimal Silva",
                    "email": "nimal@example.com"
                },
                "company": {"id": "c-1", "name": "Acme Distributors", "slug": "acme"}
            }
        }
