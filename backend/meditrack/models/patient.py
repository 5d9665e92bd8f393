#Define table columns and types.
from sqlalchemy import Column, Integer, String, Text, DateTime
#Provides database functions for timestamps
from sqlalchemy.sql import func
#to define controlled value sets.
import enum
from ..database import Base

class Gender(enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"

GENDER_LABELS = {
    Gender.MALE: "Male",
    Gender.FEMALE: "Female",
    Gender.OTHER: "Other",
    Gender.PREFER_NOT_TO_SAY: "Prefer not to say",
}

class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    date_of_birth = Column(String, nullable=False)  # ISO date text
    gender = Column(String, nullable=False)
    email = Column(String)
    phone = Column(String)
    address = Column(Text)
    medical_history = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {column: getattr(self, column) for column in PATIENT_COLUMNS}

#column order of the logical table, shared by both backends
PATIENT_COLUMNS = (
    "id", "first_name", "last_name", "date_of_birth", "gender", "email",
    "phone", "address", "medical_history", "created_at", "updated_at",
)
TABLE_NAME = Patient.__tablename__
