"""SQL-backed session store.

Encapsulates reads and writes for ``survey_sessions``, ``survey_steps`` and
``survey_answers`` so the service never sees SQL. Updates are conditioned on
the stored version inside one transaction; steps are written once at insert
and never rewritten.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine

from survey_stepper.logic.errors import SessionNotFound, VersionConflict
from survey_stepper.models.session import Answer, Progress, Step, SurveySession

logger = logging.getLogger(__name__)


class SqlSessionStore:
    name = "sql"

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # -- reads ---------------------------------------------------------------

    def get(self, session_id: str) -> SurveySession | None:
        with self.engine.connect() as conn:
            row = conn.execute(
                sql_text(
                    """
                    SELECT id, survey_id, current_step_index, version, created_at, updated_at,
                           completed_steps, progress_percentage
                    FROM survey_sessions WHERE id = :sid
                    """
                ),
                {"sid": session_id},
            ).fetchone()
            if row is None:
                return None
            step_rows = conn.execute(
                sql_text(
                    """
                    SELECT step_id, title, description, question_ids
                    FROM survey_steps WHERE session_id = :sid ORDER BY step_index ASC
                    """
                ),
                {"sid": session_id},
            ).fetchall()
            answer_rows = conn.execute(
                sql_text(
                    """
                    SELECT question_id, value, step_id, created_at, updated_at
                    FROM survey_answers WHERE session_id = :sid ORDER BY position ASC
                    """
                ),
                {"sid": session_id},
            ).fetchall()

        steps = [
            Step(id=str(r[0]), title=str(r[1]), description=r[2], question_ids=json.loads(r[3]))
            for r in step_rows
        ]
        answers = [
            Answer(question_id=str(r[0]), value=json.loads(r[1]), step_id=r[2], created_at=r[3], updated_at=r[4])
            for r in answer_rows
        ]
        # Snapshot as last written by the service, not recomputed on read
        progress = Progress(
            completed_steps=int(row[6]),
            total_steps=len(steps),
            percentage=int(row[7]),
        )
        return SurveySession(
            id=str(row[0]),
            survey_id=str(row[1]),
            current_step_index=int(row[2]),
            version=int(row[3]),
            created_at=str(row[4]),
            updated_at=str(row[5]),
            steps=steps,
            answers=answers,
            progress=progress,
        )

    # -- writes --------------------------------------------------------------

    def put(self, session: SurveySession, expected_version: int | None = None) -> SurveySession:
        with self.engine.begin() as conn:
            if expected_version is None:
                new_version = 1
                self._insert_session(conn, session, new_version)
                self._insert_steps(conn, session)
            else:
                new_version = expected_version + 1
                result = conn.execute(
                    sql_text(
                        """
                        UPDATE survey_sessions
                        SET current_step_index = :idx, version = :new_version, updated_at = :updated_at,
                            completed_steps = :completed, progress_percentage = :pct
                        WHERE id = :sid AND version = :expected
                        """
                    ),
                    {
                        "idx": session.current_step_index,
                        "completed": session.progress.completed_steps,
                        "pct": session.progress.percentage,
                        "new_version": new_version,
                        "updated_at": session.updated_at,
                        "sid": session.id,
                        "expected": expected_version,
                    },
                )
                if result.rowcount == 0:
                    if self._exists(conn, session.id):
                        logger.info("session_store.conflict session_id=%s expected=%s", session.id, expected_version)
                        raise VersionConflict(session.id)
                    raise SessionNotFound(session.id)
                conn.execute(sql_text("DELETE FROM survey_answers WHERE session_id = :sid"), {"sid": session.id})
            self._insert_answers(conn, session)
        return session.model_copy(deep=True, update={"version": new_version})

    def delete(self, session_id: str, expected_version: int | None = None) -> bool:
        with self.engine.begin() as conn:
            row = conn.execute(
                sql_text("SELECT version FROM survey_sessions WHERE id = :sid"),
                {"sid": session_id},
            ).fetchone()
            if row is None:
                return False
            if expected_version is not None and int(row[0]) != expected_version:
                raise VersionConflict(session_id)
            # Children first; SQLite does not enforce ON DELETE CASCADE by default
            conn.execute(sql_text("DELETE FROM survey_answers WHERE session_id = :sid"), {"sid": session_id})
            conn.execute(sql_text("DELETE FROM survey_steps WHERE session_id = :sid"), {"sid": session_id})
            conn.execute(sql_text("DELETE FROM survey_sessions WHERE id = :sid"), {"sid": session_id})
        return True

    # -- helpers -------------------------------------------------------------

    @staticmethod
    def _exists(conn: Connection, session_id: str) -> bool:
        row = conn.execute(
            sql_text("SELECT 1 FROM survey_sessions WHERE id = :sid"),
            {"sid": session_id},
        ).fetchone()
        return row is not None

    def _insert_session(self, conn: Connection, session: SurveySession, version: int) -> None:
        if self._exists(conn, session.id):
            raise VersionConflict(session.id, "Survey session already exists")
        conn.execute(
            sql_text(
                """
                INSERT INTO survey_sessions
                    (id, survey_id, current_step_index, version, completed_steps, progress_percentage,
                     created_at, updated_at)
                VALUES (:sid, :survey_id, :idx, :version, :completed, :pct, :created_at, :updated_at)
                """
            ),
            {
                "sid": session.id,
                "survey_id": session.survey_id,
                "idx": session.current_step_index,
                "completed": session.progress.completed_steps,
                "pct": session.progress.percentage,
                "version": version,
                "created_at": session.created_at,
                "updated_at": session.updated_at,
            },
        )

    @staticmethod
    def _insert_steps(conn: Connection, session: SurveySession) -> None:
        rows: list[dict[str, Any]] = [
            {
                "sid": session.id,
                "idx": index,
                "step_id": step.id,
                "title": step.title,
                "description": step.description,
                "question_ids": json.dumps(step.question_ids),
            }
            for index, step in enumerate(session.steps)
        ]
        if rows:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO survey_steps (session_id, step_index, step_id, title, description, question_ids)
                    VALUES (:sid, :idx, :step_id, :title, :description, :question_ids)
                    """
                ),
                rows,
            )

    @staticmethod
    def _insert_answers(conn: Connection, session: SurveySession) -> None:
        rows: list[dict[str, Any]] = [
            {
                "sid": session.id,
                "position": position,
                "step_id": answer.step_id,
                "question_id": answer.question_id,
                "value": json.dumps(answer.value),
                "created_at": answer.created_at,
                "updated_at": answer.updated_at,
            }
            for position, answer in enumerate(session.answers)
        ]
        if rows:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO survey_answers
                        (session_id, position, step_id, question_id, value, created_at, updated_at)
                    VALUES (:sid, :position, :step_id, :question_id, :value, :created_at, :updated_at)
                    """
                ),
                rows,
            )


__all__ = ["SqlSessionStore"]
