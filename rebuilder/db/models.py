from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Enum, JSON, Text, Integer
from sqlalchemy.orm import Mapped, mapped_column
from rebuilder.db.session import Base
from rebuilder.core.workflow import ImportStage

class ImportJob(Base):
    __tablename__ = "import_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    source: Mapped[str] = mapped_column(Text, nullable=False)
    branch: Mapped[str] = mapped_column(String(255), nullable=False, default="main")
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    output_path: Mapped[str] = mapped_column(Text, nullable=False)
    # Validated ImportRequest, as submitted
    request: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    stage: Mapped[ImportStage] = mapped_column(Enum(ImportStage), default=ImportStage.ACQUIRE_SOURCE, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="QUEUED", nullable=False)

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    result: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
