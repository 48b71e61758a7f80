"""
Esquemas Pydantic para la entidad Member en LibroGestion.
Define los modelos de entrada y salida para validación y serialización de socios.
"""

from pydantic import BaseModel, EmailStr, ConfigDict, Field
import datetime
from typing import Optional

from librogestion.models.enums import AccountStatus

class MemberBase(BaseModel):
    """
    Esquema base para un socio.

    Atributos:
        first_name (str): Nombre.
        last_name (str): Apellido.
        email (EmailStr): Correo electrónico (único).
        phone (Optional[str]): Teléfono.
        address (Optional[str]): Dirección.
        date_of_birth (Optional[datetime.date]): Fecha de nacimiento.
        profile_picture_url (Optional[str]): URL de la foto de perfil.
    """
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    date_of_birth: Optional[datetime.date] = None
    profile_picture_url: Optional[str] = Field(None, max_length=2048)

class MemberCreate(MemberBase):
    membership_date: datetime.date = Field(default_factory=datetime.date.today)
    account_status: AccountStatus = AccountStatus.ACTIVE

class MemberUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    date_of_birth: Optional[datetime.date] = None
    profile_picture_url: Optional[str] = Field(None, max_length=2048)

class MemberSchema(MemberBase):
    """
    Esquema de salida para un socio.
    """
    id: int
    membership_date: datetime.date
    account_status: AccountStatus
    is_deleted: bool

    model_config = ConfigDict(from_attributes=True)
