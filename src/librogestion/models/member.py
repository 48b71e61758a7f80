"""
Modelo ORM para la entidad Member en la base de datos de LibroGestion.
Define los datos de un socio de la biblioteca y sus préstamos y reservas.
"""

import datetime
from sqlalchemy import Column, Integer, String, Date, Boolean, DateTime, func, false
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum
from librogestion.db.session import Base
from librogestion.models.enums import AccountStatus

class Member(Base):
    """
    Representa un socio registrado en la biblioteca.

    Atributos:
        id (int): Identificador primario del socio.
        first_name (str): Nombre.
        last_name (str): Apellido.
        email (str): Correo electrónico único.
        phone (str): Teléfono de contacto.
        address (str): Dirección postal.
        membership_date (date): Fecha de alta como socio.
        account_status (AccountStatus): Active, Suspended o Inactive.
        date_of_birth (date): Fecha de nacimiento.
        profile_picture_url (str): URL de la foto de perfil.
        is_deleted (bool): Marca de borrado lógico.
        loans (List[Loan]): Préstamos del socio (se borran con el socio).
        reservations (List[Reservation]): Reservas del socio (se borran con el socio).
    """
    __tablename__ = "members"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(String(255), nullable=True)
    membership_date = Column(Date, nullable=False, default=datetime.date.today)
    account_status = Column(
        SAEnum(AccountStatus, name="account_status", native_enum=False,
               values_callable=lambda enum: [e.value for e in enum]),
        default=AccountStatus.ACTIVE,
        nullable=False,
    )
    date_of_birth = Column(Date, nullable=True)
    profile_picture_url = Column(String(2048), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False, server_default=false(), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)

    loans = relationship(
        "Loan",
        back_populates="member",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reservations = relationship(
        "Reservation",
        back_populates="member",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        """
        Representación legible del objeto Member para depuración.

        Returns:
            str: Cadena representando el socio.
        """
        return f"<Member(id={self.id}, email='{self.email}', status='{self.account_status}')>"
