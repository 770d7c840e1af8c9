from __future__ import annotations
from typing import Optional
import logging
from celery.exceptions import SoftTimeLimitExceeded
from sqlalchemy.orm import Session
from rebuilder.tasks.celery_app import celery_app
from rebuilder.core.config import settings
from rebuilder.db.session import SessionLocal
from rebuilder.db.models import ImportJob
from rebuilder.core.workflow import ImportStage
from rebuilder.core.workspace import Workspace
from rebuilder.core.engine import ImportEngine
from rebuilder.schemas.imports import ImportJobResponse, ImportRequest

log = logging.getLogger(__name__)


def create_import_job(db: Session, request: ImportRequest) -> ImportJob:
    job = ImportJob(
        source=request.source,
        branch=request.branch,
        depth=request.depth,
        output_path=request.output_path,
        request=request.model_dump(),
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def enqueue_import(request: ImportRequest) -> str:
    db: Session = SessionLocal()
    try:
        job = create_import_job(db, request)
        run_import_job.delay(job.id)
        log.info("Import queued", extra={"job_id": job.id, "stage": str(job.stage)})
        return job.id
    finally:
        db.close()


@celery_app.task(name="run_import_job", soft_time_limit=settings.import_timeout_seconds)
def run_import_job(job_id: str) -> None:
    db: Session = SessionLocal()
    try:
        job = db.get(ImportJob, job_id)
        if not job:
            log.error("Job not found", extra={"job_id": job_id, "stage": "-"})
            return

        job.status = "RUNNING"
        db.commit()

        def set_stage(stage: ImportStage) -> None:
            job.stage = stage
            db.commit()

        request = ImportRequest.model_validate(job.request)
        engine = ImportEngine(workspace=Workspace(job_id=job.id), on_stage=set_stage)

        log.info("Starting import", extra={"job_id": job_id, "stage": str(job.stage)})
        result = engine.run(request)

        job.result = result.to_dict()
        if result.success:
            job.status = "DONE"
            job.stage = ImportStage.DONE
            log.info("Import completed successfully", extra={"job_id": job_id, "stage": "DONE"})
        else:
            job.status = "FAILED"
            job.stage = ImportStage.FAILED
            job.error_message = result.error
        db.commit()

    except SoftTimeLimitExceeded:
        log.error("Import timed out", extra={"job_id": job_id, "stage": "-"})
        _mark_failed(db, job_id, f"Import exceeded {settings.import_timeout_seconds}s")
    except Exception as e:
        log.exception("Import failed", extra={"job_id": job_id, "stage": "-"})
        _mark_failed(db, job_id, str(e))
    finally:
        db.close()


def _mark_failed(db: Session, job_id: str, message: str) -> None:
    db.rollback()
    job = db.get(ImportJob, job_id)
    if job:
        job.status = "FAILED"
        job.stage = ImportStage.FAILED
        job.error_message = message
        db.commit()


def get_import_job(job_id: str) -> Optional[ImportJobResponse]:
    db: Session = SessionLocal()
    try:
        job = db.get(ImportJob, job_id)
        if not job:
            return None
        result = job.result or {}
        return ImportJobResponse(
            id=job.id,
            source=job.source,
            branch=job.branch,
            output_path=job.output_path,
            stage=job.stage,
            status=job.status,
            error_message=job.error_message,
            result=result,
            warnings=result.get("warnings", []),
        )
    finally:
        db.close()
