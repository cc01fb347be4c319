# repository.py
from __future__ import annotations

import json
import logging
from typing import List
from datetime import datetime

from pydantic import NaiveDatetime
from sqlalchemy.pool import NullPool
from sqlalchemy import text
from sqlmodel import SQLModel, Field, Session, create_engine, select

from config import merge_worker_config, worker_config_to_dict
from domain import (
    Activity,
    ActivityStatus,
    ActivityType,
    Grade,
    Intervention,
    PreconditionError,
    Worker,
    first_overlap,
)

logger = logging.getLogger(__name__)


class WorkerDB(SQLModel, table=True):
    id: str = Field(primary_key=True)
    first_name: str = ""
    last_name: str = ""
    grade: str
    station: str | None = None
    settings_json: str | None = None


# Instants are naive local wall-clock times
class ActivityDB(SQLModel, table=True):
    id: str = Field(primary_key=True)
    worker_id: str = Field(index=True, foreign_key="workerdb.id")
    type: str
    start_at: NaiveDatetime = Field(index=True)
    end_at: NaiveDatetime
    status: str
    notes: str | None = None


class InterventionDB(SQLModel, table=True):
    id: str = Field(primary_key=True)
    activity_id: str = Field(index=True, foreign_key="activitydb.id")
    start_at: NaiveDatetime
    end_at: NaiveDatetime
    motif: str


def build_engine(db_url: str, echo: bool = False):
    """SQLite file for local use; otherwise a serverless Postgres with TLS and no local pool."""
    if db_url.startswith("sqlite"):
        return create_engine(db_url, echo=echo, connect_args={"check_same_thread": False})
    if "sslmode=" not in db_url:
        db_url += ("&" if "?" in db_url else "?") + "sslmode=require"
    return create_engine(
        db_url,
        echo=echo,
        pool_pre_ping=True,
        poolclass=NullPool,
        connect_args={"connect_timeout": 10},
    )


def _to_intervention(row: InterventionDB) -> Intervention:
    return Intervention(id=row.id, start=row.start_at, end=row.end_at, motif=row.motif)


def _intervention_row(activity_id: str, i: Intervention) -> InterventionDB:
    return InterventionDB(id=i.id, activity_id=activity_id, start_at=i.start, end_at=i.end, motif=i.motif)


def _reject_overlap(activity_id: str, interventions: List[Intervention]) -> None:
    pair = first_overlap(interventions)
    if pair is not None:
        a, b = pair
        raise PreconditionError(
            f"Interventions {a.id} and {b.id} of activity {activity_id} overlap: "
            f"{a.start:%d/%m %H:%M}-{a.end:%H:%M} and {b.start:%d/%m %H:%M}-{b.end:%H:%M}"
        )


class ActivityRepository:
    """Workers, activities and interventions. Never falls back to SQLite in production."""
    def __init__(self, url: str = "sqlite:///gardes.db", echo: bool = False):
        self.primary_url = url
        self.engine = build_engine(url, echo=echo)
        if not url.startswith("sqlite"):
            self._check_connection()
        SQLModel.metadata.create_all(self.engine)

    def _check_connection(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("select 1"))
        except Exception as e:
            raise RuntimeError(f"Could not connect to Postgres: {e}") from e

    # -- workers --
    def save_worker(self, worker: Worker) -> None:
        """Creates or updates the worker's profile and stored settings."""
        with Session(self.engine) as session:
            row = session.get(WorkerDB, worker.id) or WorkerDB(id=worker.id, grade=worker.grade.value)
            row.first_name = worker.first_name
            row.last_name = worker.last_name
            row.grade = worker.grade.value
            row.station = worker.station
            row.settings_json = json.dumps(worker_config_to_dict(worker.config))
            session.add(row)
            session.commit()
        logger.info(
            f"Worker {worker.id} saved",
            extra={"worker_id": worker.id, "grade": worker.grade.name, "action": "worker_saved"},
        )

    def get_worker(self, worker_id: str) -> Worker:
        with Session(self.engine) as session:
            row = session.get(WorkerDB, worker_id)
            if row is None:
                raise LookupError(f"Unknown worker: {worker_id}")
            stored = json.loads(row.settings_json) if row.settings_json else None
            return Worker(
                id=row.id,
                grade=Grade(row.grade),
                config=merge_worker_config(stored),
                first_name=row.first_name,
                last_name=row.last_name,
                station=row.station,
            )

    # -- activities --
    def add_activity(self, worker_id: str, a: Activity) -> None:
        _reject_overlap(a.id, a.interventions)
        with Session(self.engine) as session:
            session.add(ActivityDB(
                id=a.id,
                worker_id=worker_id,
                type=a.type.value,
                start_at=a.start,
                end_at=a.end,
                status=a.status.value,
                notes=a.notes,
            ))
            for i in a.interventions:
                session.add(_intervention_row(a.id, i))
            session.commit()
        logger.info(
            f"Activity {a.id} stored",
            extra={"activity_id": a.id, "worker_id": worker_id, "action": "activity_created"},
        )

    def update_activity(self, a: Activity) -> None:
        """Rewrites type, bounds, status and notes. Interventions are left as stored."""
        with Session(self.engine) as session:
            row = session.get(ActivityDB, a.id)
            if row is None:
                raise LookupError(f"Unknown activity: {a.id}")
            row.type = a.type.value
            row.start_at = a.start
            row.end_at = a.end
            row.status = a.status.value
            row.notes = a.notes
            session.add(row)
            session.commit()
        logger.info(f"Activity {a.id} updated", extra={"activity_id": a.id, "action": "activity_updated"})

    def delete_activity(self, activity_id: str) -> None:
        """Removes the activity and its interventions."""
        with Session(self.engine) as session:
            row = session.get(ActivityDB, activity_id)
            if row is None:
                raise LookupError(f"Unknown activity: {activity_id}")
            for inter in session.exec(select(InterventionDB).where(InterventionDB.activity_id == activity_id)):
                session.delete(inter)
            session.delete(row)
            session.commit()
        logger.info(
            f"Activity {activity_id} deleted",
            extra={"activity_id": activity_id, "action": "activity_deleted"},
        )

    def add_intervention(self, activity_id: str, i: Intervention) -> None:
        """Attaches an intervention; one sharing time with an existing one is rejected."""
        with Session(self.engine) as session:
            if session.get(ActivityDB, activity_id) is None:
                raise LookupError(f"Unknown activity: {activity_id}")
            existing = session.exec(
                select(InterventionDB).where(InterventionDB.activity_id == activity_id)
            ).all()
            _reject_overlap(activity_id, [_to_intervention(r) for r in existing] + [i])
            session.add(_intervention_row(activity_id, i))
            session.commit()
        logger.info(
            f"Intervention {i.id} stored",
            extra={"activity_id": activity_id, "intervention_id": i.id, "action": "intervention_created"},
        )

    def update_status(self, activity_id: str, status: ActivityStatus) -> None:
        with Session(self.engine) as session:
            row = session.get(ActivityDB, activity_id)
            if row is None:
                raise LookupError(f"Unknown activity: {activity_id}")
            row.status = status.value
            session.add(row)
            session.commit()

    def _load(self, session: Session, row: ActivityDB) -> Activity:
        inters = session.exec(
            select(InterventionDB)
            .where(InterventionDB.activity_id == row.id)
            .order_by(InterventionDB.start_at)
        ).all()
        return Activity(
            id=row.id,
            type=ActivityType(row.type),
            start=row.start_at,
            end=row.end_at,
            status=ActivityStatus(row.status),
            interventions=[_to_intervention(r) for r in inters],
            notes=row.notes,
        )

    def get_activity(self, activity_id: str) -> Activity:
        with Session(self.engine) as session:
            row = session.get(ActivityDB, activity_id)
            if row is None:
                raise LookupError(f"Unknown activity: {activity_id}")
            return self._load(session, row)

    def list_activities(
        self, worker_id: str, start: datetime | None = None, end: datetime | None = None
    ) -> List[Activity]:
        """Worker's activities starting in [start, end), most recent first."""
        with Session(self.engine) as session:
            query = select(ActivityDB).where(ActivityDB.worker_id == worker_id)
            if start is not None:
                query = query.where(ActivityDB.start_at >= start)
            if end is not None:
                query = query.where(ActivityDB.start_at < end)
            rows = session.exec(query.order_by(ActivityDB.start_at.desc(), ActivityDB.id.desc())).all()
            return [self._load(session, r) for r in rows]


__all__ = ["WorkerDB", "ActivityDB", "InterventionDB", "ActivityRepository", "build_engine"]
