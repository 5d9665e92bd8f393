#used to control how models are exposed when the package is imported.
from .patient import Patient, Gender, GENDER_LABELS, PATIENT_COLUMNS, TABLE_NAME

#all public models
__all__ = ["Patient", "Gender", "GENDER_LABELS", "PATIENT_COLUMNS", "TABLE_NAME"]
