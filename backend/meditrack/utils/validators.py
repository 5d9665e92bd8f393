"""Format checks and validation helpers for patient records."""
import re
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..exceptions import PatientValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?\d{10,15}$")
PHONE_SEPARATORS_RE = re.compile(r"[\s()-]")

FIELD_LABELS = {
    "first_name": "First name",
    "last_name": "Last name",
    "date_of_birth": "Date of birth",
    "gender": "Gender",
    "email": "Email",
    "phone": "Phone number",
    "address": "Address",
    "medical_history": "Medical history",
}


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_RE.match(PHONE_SEPARATORS_RE.sub("", phone)))


def calculate_age(date_of_birth, today: Optional[date] = None) -> Optional[int]:
    """Whole years between ``date_of_birth`` (date or ISO text) and today."""
    if not date_of_birth:
        return None
    if isinstance(date_of_birth, str):
        try:
            date_of_birth = date.fromisoformat(date_of_birth[:10])
        except ValueError:
            return None
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def _message_for(error: Dict[str, Any]) -> str:
    field = str(error["loc"][0]) if error.get("loc") else ""
    label = FIELD_LABELS.get(field, field)
    if error["type"] == "missing":
        return f"{label} is required"
    if field == "email":
        return "Email is invalid"
    if error["type"] == "value_error":
        return error["msg"].replace("Value error, ", "", 1)
    if field == "gender":
        return "Gender must be one of: male, female, other, prefer_not_to_say"
    return f"{label} is invalid"


def check_patient(fields: Dict[str, Any]):
    """Validate a partial record and return the parsed ``PatientCreate``.

    Raises PatientValidationError naming every violated field.
    """
    from ..schemas.patient import PatientCreate  # avoids a circular import

    try:
        return PatientCreate(**fields)
    except ValidationError as e:
        errors, names = [], []
        for error in e.errors():
            errors.append(_message_for(error))
            if error.get("loc"):
                name = str(error["loc"][0])
                if name not in names:
                    names.append(name)
        raise PatientValidationError(errors, names) from e


def validate_patient(fields: Dict[str, Any]) -> List[str]:
    """Form-side check: the list of problems, empty when the record is valid."""
    try:
        check_patient({k: v for k, v in fields.items() if v is not None})
    except PatientValidationError as e:
        return e.errors
    return []
