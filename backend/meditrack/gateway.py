"""
gateway
~~~~~~~

The operation set the UI layer calls. ``init_db`` tries the embedded engine
once per context; if that fails the context is switched to the in-memory
table for good, and every later call is routed there. Every function takes
the ``DatabaseContext`` as its first argument.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, func
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from .database import Base, DatabaseContext, PersistenceMode
from .exceptions import QueryExecutionError
from .models.patient import Patient
from .notifier import ChangeSubscription
from .query import run_query, validate_query
from .utils.validators import check_patient

logger = logging.getLogger(__name__)

REGISTER_OPERATION = "register"


def _prepare_engine(url: str) -> Engine:
    parsed = make_url(url)
    connect_args = {}
    if parsed.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, connect_args=connect_args)


async def init_db(ctx: DatabaseContext) -> Optional[Engine]:
    """Return the engine, or None when the in-memory fallback is active."""
    if ctx.mode is PersistenceMode.FALLBACK:
        logger.debug("Using in-memory storage only (skipping engine)")
        return None
    if ctx.mode is PersistenceMode.ENGINE:
        return ctx.engine

    url = ctx.settings.database_url
    engine = None
    try:
        engine = _prepare_engine(url)
        # Create tables if they don't exist
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.warning("Error initializing database (%s); falling back to in-memory storage", e)
        if engine is not None:
            engine.dispose()
        ctx.use_fallback()
        if not ctx.storage.is_available():
            logger.warning("Snapshot storage unavailable; patients will not survive a restart")
        if ctx.store.load_snapshot():
            logger.info("Loaded %d patients from snapshot", len(ctx.store))
        return None

    ctx.use_engine(engine)
    logger.info("Database engine initialized successfully (%s)", engine.url.get_backend_name())
    return engine


async def register_patient(ctx: DatabaseContext, fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and store a new patient, then notify subscribers.

    Returns the stored row including ``id`` and timestamps.
    """
    # Filter out missing values before validation
    data = {key: value for key, value in fields.items() if value is not None}
    record = check_patient(data).to_record()

    engine = await init_db(ctx)
    if engine is not None:
        db = ctx.get_session()
        try:
            patient = Patient(**record)
            db.add(patient)
            db.commit()
            db.refresh(patient)
            stored = patient.to_dict()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Error registering patient: %s", e)
            raise QueryExecutionError(f"SQL Error: {e}") from e
        finally:
            db.close()
    else:
        # reload first so ids stay ahead of other tabs' writes
        ctx.store.load_snapshot()
        stored = ctx.store.append(record)

    logger.info("Registered patient %s (%s)", stored["id"], ctx.mode.value)
    ctx.bus.publish(REGISTER_OPERATION)
    return stored


async def execute_query(ctx: DatabaseContext, text: str) -> List[Dict[str, Any]]:
    """Run free-form query text against the active backend."""
    query = validate_query(text)

    engine = await init_db(ctx)
    if engine is not None:
        try:
            with engine.begin() as conn:
                result = conn.exec_driver_sql(query)
                if not result.returns_rows:
                    return []
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            logger.error("SQL execution error: %s", e)
            message = getattr(e, "orig", None) or e
            raise QueryExecutionError(f"SQL Error: {message}") from e

    ctx.store.load_snapshot()
    return run_query(query, ctx.store.records, fail_open=ctx.settings.query_fail_open)


async def list_recent(ctx: DatabaseContext, limit: int = 10, offset: int = 0) -> List[Dict[str, Any]]:
    """Newest patients first, paginated."""
    limit = max(0, int(limit))
    offset = max(0, int(offset))

    engine = await init_db(ctx)
    if engine is not None:
        db = ctx.get_session()
        try:
            patients = (
                db.query(Patient)
                .order_by(Patient.created_at.desc(), Patient.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [patient.to_dict() for patient in patients]
        except SQLAlchemyError as e:
            logger.error("Error getting patients: %s", e)
            raise QueryExecutionError(f"SQL Error: {e}") from e
        finally:
            db.close()

    ctx.store.load_snapshot()
    return ctx.store.newest_first()[offset:offset + limit]


async def count_all(ctx: DatabaseContext) -> int:
    engine = await init_db(ctx)
    if engine is not None:
        db = ctx.get_session()
        try:
            return int(db.query(func.count(Patient.id)).scalar() or 0)
        except SQLAlchemyError as e:
            logger.error("Error counting patients: %s", e)
            raise QueryExecutionError(f"SQL Error: {e}") from e
        finally:
            db.close()

    ctx.store.load_snapshot()
    return len(ctx.store)


async def subscribe_to_changes(ctx: DatabaseContext) -> ChangeSubscription:
    """Counter bumped by every change notification from now on.

    Call ``close()`` on the result to stop listening.
    """
    return ChangeSubscription(ctx.bus)
