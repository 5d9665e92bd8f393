from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from typing import Any, Dict, List

from ..config import settings
from ..database import DatabaseContext, get_db
from ..exceptions import (
    PatientValidationError, QueryExecutionError, QuerySyntaxError, TableNotFoundError
)
from ..models.patient import GENDER_LABELS
from ..schemas.patient import (
    ChangeStatusResponse, CountResponse, GenderOption, PatientListResponse,
    PatientResponse, QueryRequest, QueryResponse
)
from ..utils.validators import calculate_age
from .. import gateway

router = APIRouter(prefix="/patients", tags=["patients"])

#queries offered on the query screen; all of them run on both backends
SAMPLE_QUERIES = [
    "SELECT * FROM patients LIMIT 10",
    "SELECT * FROM patients WHERE gender = 'male' LIMIT 5",
    "SELECT first_name, last_name, date_of_birth FROM patients ORDER BY date_of_birth DESC LIMIT 5",
    "SELECT COUNT(*) AS total_count FROM patients",
    "SELECT * FROM patients WHERE medical_history LIKE '%allergy%'",
]

#Register a new patient
@router.post("/", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    patient_data: Dict[str, Any] = Body(...),
    db: DatabaseContext = Depends(get_db)
):
    """Register a new patient."""
    try:
        stored = await gateway.register_patient(db, patient_data)
    except PatientValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"errors": e.errors, "fields": e.fields}
        )
    except QueryExecutionError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _build_patient_response(stored)

#Newest patients first
@router.get("/", response_model=PatientListResponse)
async def get_patients(
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(0, ge=0),
    db: DatabaseContext = Depends(get_db)
):
    """Get recent patients with the total count."""
    try:
        rows = await gateway.list_recent(db, limit, offset)
        total = await gateway.count_all(db)
    except QueryExecutionError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return PatientListResponse(
        patients=[_build_patient_response(row) for row in rows],
        total=total,
        limit=limit,
        offset=offset
    )

@router.get("/count", response_model=CountResponse)
async def count_patients(db: DatabaseContext = Depends(get_db)):
    try:
        return CountResponse(total=await gateway.count_all(db))
    except QueryExecutionError as e:
        raise HTTPException(status_code=500, detail=str(e))

#Run a free-form query
@router.post("/query", response_model=QueryResponse)
async def run_query(
    request_data: QueryRequest,
    db: DatabaseContext = Depends(get_db)
):
    """Execute a query against whichever backend is active."""
    try:
        rows = await gateway.execute_query(db, request_data.query)
    except TableNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except QuerySyntaxError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except QueryExecutionError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return QueryResponse(rows=rows, row_count=len(rows), mode=db.mode.value)

@router.get("/query/samples", response_model=List[str])
async def get_sample_queries():
    return SAMPLE_QUERIES

@router.get("/gender-options", response_model=List[GenderOption])
async def get_gender_options():
    return [GenderOption(value=gender.value, label=label) for gender, label in GENDER_LABELS.items()]

#Long-poll for change notifications
@router.get("/changes", response_model=ChangeStatusResponse)
async def wait_for_changes(
    request: Request,
    since: int = Query(0, ge=0),
    timeout: float = Query(25.0, ge=0, le=60)
):
    """Wait until the change counter moves past ``since`` or the timeout ends."""
    subscription = request.app.state.changes
    count = await subscription.wait_for_change(since, timeout)
    return ChangeStatusResponse(
        count=count,
        operation=subscription.last_operation,
        changed=count > since
    )

def _build_patient_response(row: Dict[str, Any]) -> PatientResponse:
    """Build patient response with the derived age."""
    response_data = dict(row)
    response_data["age"] = calculate_age(row.get("date_of_birth"))
    return PatientResponse(**response_data)
