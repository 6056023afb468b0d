# module rental_hub.bookings.models
"""
Modèles de la feature 'bookings'.
- BookingStatus: statuts de la colonne `status` (éditée à la main dans Supabase).
- BookingRecord: vue typée d'une ligne de la table `bookings`.
- BookingRequest: payload du formulaire public (camelCase côté front).
"""
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class BookingStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"
    PAID = "Paid"

    @classmethod
    def parse(cls, value: Optional[str]) -> "BookingStatus":
        """Statut vide => Pending (ligne pas encore revue). Valeur hors enum => ValueError."""
        if not value:
            return cls.PENDING
        return cls(str(value).strip())


class BookingRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    ref: str = ""
    status: BookingStatus = BookingStatus.PENDING
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    organization: Optional[str] = None
    event_type: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_hours: Optional[float] = None
    attendees: Optional[int] = None
    total_amount: Decimal = Decimal("0")
    house_rules_agreed: bool = False
    sound: Optional[str] = None
    equipment: Optional[str] = None
    referral: Optional[str] = None
    description: Optional[str] = None
    payment_session_url: Optional[str] = None
    payment_session_id: Optional[str] = None
    payment_confirmation_id: Optional[str] = None
    created_at: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return BookingStatus.parse(v)

    @field_validator("total_amount", mode="before")
    @classmethod
    def _amount_or_zero(cls, v):
        return v if v not in (None, "") else Decimal("0")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "BookingRecord":
        data = dict(row or {})
        data["id"] = str(data.get("id") or "")
        return cls.model_validate(data)

    @property
    def greeting_name(self) -> str:
        name = (self.first_name or "").strip()
        return name.split(" ")[0] if name else "there"

    @property
    def has_payment_session(self) -> bool:
        return bool(self.payment_session_url)


class BookingRequest(BaseModel):
    """
    Formulaire de demande de réservation.
    Les champs arrivent en camelCase (firstName, eventType, ...), populate_by_name
    autorise aussi le snake_case (tests, appels internes).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(default="", max_length=40)
    org: str = Field(default="", max_length=200)
    event_type: str = Field(min_length=1, max_length=100)
    date: str = Field(min_length=1, max_length=40)
    start_time: str = Field(min_length=1, max_length=20)
    end_time: str = Field(min_length=1, max_length=20)
    duration_hours: float = Field(gt=0, le=24)
    attendees: int = Field(ge=1)
    total_amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    house_rules_agreed: bool = False
    sound: str = Field(default="", max_length=100)
    equipment: List[str] = Field(default_factory=list)
    referral: str = Field(default="", max_length=100)
    description: str = Field(default="", max_length=5000)

    @field_validator("house_rules_agreed")
    @classmethod
    def _rules_must_be_agreed(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("Les règles de la maison doivent être acceptées")
        return v

    def to_row(self, ref: str) -> Dict[str, Any]:
        """Ligne initiale (statut Pending) pour la table `bookings`."""
        return {
            "ref": ref,
            "status": BookingStatus.PENDING.value,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "organization": self.org,
            "event_type": self.event_type,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_hours": self.duration_hours,
            "attendees": self.attendees,
            "total_amount": str(self.total_amount),
            "house_rules_agreed": True,
            "sound": self.sound,
            "equipment": ", ".join(self.equipment),
            "referral": self.referral,
            "description": self.description or "(none provided)",
        }
