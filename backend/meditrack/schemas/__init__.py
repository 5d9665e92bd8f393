#request and response contracts for the patient API
from .patient import (
    PatientCreate, PatientResponse, PatientListResponse, CountResponse,
    QueryRequest, QueryResponse, ChangeStatusResponse, GenderOption
)

#defines what gets exported when someone imports from this module
__all__ = [
    "PatientCreate", "PatientResponse", "PatientListResponse", "CountResponse",
    "QueryRequest", "QueryResponse", "ChangeStatusResponse", "GenderOption"
]
