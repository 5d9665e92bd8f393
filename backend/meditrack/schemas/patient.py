from pydantic import BaseModel, validator
from typing import Optional, List, Dict, Any
from datetime import date, datetime
from ..models.patient import Gender
from ..utils.validators import is_valid_email, is_valid_phone

#patient creation contract
#required: first_name, last_name, date_of_birth, gender
class PatientCreate(BaseModel):
    first_name: str
    last_name: str
    date_of_birth: date
    gender: Gender
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    medical_history: Optional[str] = None

    #blank optional inputs count as "not provided"
    @validator('email', 'phone', 'address', 'medical_history', pre=True)
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @validator('date_of_birth', pre=True)
    def date_of_birth_required(cls, v):
        if isinstance(v, str) and not v.strip():
            raise ValueError('Date of birth is required')
        return v

    #option values are matched case-insensitively ("Male" -> "male")
    @validator('gender', pre=True)
    def normalize_gender(cls, v):
        if isinstance(v, str):
            if not v.strip():
                raise ValueError('Gender is required')
            return v.strip().lower()
        return v

    @validator('first_name')
    def validate_first_name(cls, v):
        if not v.strip():
            raise ValueError('First name is required')
        return v.strip()

    @validator('last_name')
    def validate_last_name(cls, v):
        if not v.strip():
            raise ValueError('Last name is required')
        return v.strip()

    @validator('date_of_birth')
    def validate_date_of_birth(cls, v):
        if v > date.today():
            raise ValueError('Date of birth cannot be in the future')
        return v

    @validator('email')
    def validate_email(cls, v):
        if v is not None and not is_valid_email(v):
            raise ValueError('Email is invalid')
        return v

    @validator('phone')
    def validate_phone(cls, v):
        if v is not None and not is_valid_phone(v):
            raise ValueError('Phone number is invalid')
        return v

    class Config:
        use_enum_values = True

    #row shape written by either backend
    def to_record(self) -> Dict[str, Any]:
        data = self.dict(exclude_none=True)
        data['date_of_birth'] = self.date_of_birth.isoformat()
        return data

#standard API output
class PatientResponse(BaseModel):
    #these Come from the database
    id: int
    first_name: str
    last_name: str
    date_of_birth: str
    gender: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    medical_history: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    #derived, not stored
    age: Optional[int] = None

    class Config:
        from_attributes = True

#paginated listing, newest first
class PatientListResponse(BaseModel):
    patients: List[PatientResponse]
    total: int
    limit: int
    offset: int

class CountResponse(BaseModel):
    total: int

#free-form query input
class QueryRequest(BaseModel):
    query: str

class QueryResponse(BaseModel):
    rows: List[Dict[str, Any]]
    row_count: int
    mode: str

#long-poll result for change notifications
class ChangeStatusResponse(BaseModel):
    count: int
    operation: Optional[str] = None
    changed: bool

class GenderOption(BaseModel):
    value: str
    label: str
