#validation helpers shared by the gateway and the API
from .validators import (
    is_valid_phone, calculate_age, check_patient, validate_patient
)

__all__ = [
    "is_valid_phone",
    "calculate_age",
    "check_patient",
    "validate_patient"
]
