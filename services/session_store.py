"""
Session Store

Append-only log of finished focus sessions in the `focus_sessions` table.
The planner reads aggregates from it (today's focused minutes, time since
the last session, days away) for burnout protection.
"""

import logging
from datetime import datetime
from typing import Optional

import pandas as pd
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.engine import Engine

from services.storage import create_db_engine

logger = logging.getLogger(__name__)

SESSION_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS focus_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    task_type VARCHAR(255) NOT NULL,
    energy_level VARCHAR(16) NOT NULL,
    selected_duration INTEGER NOT NULL,
    recommended_duration INTEGER,
    selected_break INTEGER NOT NULL DEFAULT 0,
    recommended_break INTEGER,
    accepted BOOLEAN NOT NULL,
    completed BOOLEAN NOT NULL,
    actual_focus_minutes REAL NOT NULL,
    skip_reason VARCHAR(32),
    reward REAL,
    session_date VARCHAR(10) NOT NULL,
    created_at VARCHAR(32) NOT NULL
)
"""

SESSION_COLUMNS = [
    'id', 'task_type', 'energy_level', 'selected_duration', 'recommended_duration',
    'selected_break', 'recommended_break', 'accepted', 'completed',
    'actual_focus_minutes', 'skip_reason', 'reward', 'session_date', 'created_at'
]


class SessionRecord(BaseModel):
    """One finished focus session."""
    task_type: str
    energy_level: str
    selected_duration: int = Field(..., ge=0, description="Minutes the user started with")
    recommended_duration: Optional[int] = Field(None, description="Minutes the engine recommended")
    selected_break: int = Field(0, ge=0)
    recommended_break: Optional[int] = None
    accepted: bool = False
    completed: bool = False
    actual_focus_minutes: float = Field(..., ge=0)
    skip_reason: Optional[str] = None
    reward: Optional[float] = None
    created_at: datetime = Field(default_factory=datetime.now)


class SessionStore:
    """SQL-backed session history."""

    def __init__(self, db_engine: Engine):
        self.db_engine = db_engine
        self.create_tables()

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs) -> 'SessionStore':
        return cls(create_db_engine(database_url, **engine_kwargs))

    def create_tables(self):
        ddl = SESSION_TABLE_DDL
        if self.db_engine.dialect.name != 'sqlite':
            ddl = ddl.replace('INTEGER PRIMARY KEY AUTOINCREMENT', 'SERIAL PRIMARY KEY')
        with self.db_engine.begin() as conn:
            conn.execute(text(ddl))

    def append(self, record: SessionRecord):
        """Store one finished session."""
        with self.db_engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO focus_sessions (
                        task_type, energy_level, selected_duration, recommended_duration,
                        selected_break, recommended_break, accepted, completed,
                        actual_focus_minutes, skip_reason, reward, session_date, created_at
                    ) VALUES (
                        :task_type, :energy_level, :selected_duration, :recommended_duration,
                        :selected_break, :recommended_break, :accepted, :completed,
                        :actual_focus_minutes, :skip_reason, :reward, :session_date, :created_at
                    )
                """),
                {
                    **record.model_dump(exclude={'created_at'}),
                    'session_date': record.created_at.date().isoformat(),
                    'created_at': record.created_at.isoformat(),
                }
            )
        logger.info(
            f"Stored session: task={record.task_type}, energy={record.energy_level}, "
            f"selected={record.selected_duration}, focused={record.actual_focus_minutes}"
        )

    def load_sessions(self) -> pd.DataFrame:
        """All sessions, newest first."""
        with self.db_engine.connect() as conn:
            df = pd.read_sql_query(
                text("SELECT * FROM focus_sessions ORDER BY created_at DESC, id DESC"),
                conn
            )
        if df.empty:
            return pd.DataFrame(columns=SESSION_COLUMNS)
        df['created_at'] = pd.to_datetime(df['created_at'])
        df['accepted'] = df['accepted'].astype(bool)
        df['completed'] = df['completed'].astype(bool)
        return df

    def count(self) -> int:
        with self.db_engine.connect() as conn:
            return int(conn.execute(text("SELECT COUNT(*) FROM focus_sessions")).scalar() or 0)

    def today_total_minutes(self, now: Optional[datetime] = None) -> float:
        """Focused minutes of completed sessions recorded today."""
        now = now or datetime.now()
        df = self.load_sessions()
        if df.empty:
            return 0.0
        today = df[(df['session_date'] == now.date().isoformat()) & df['completed']]
        return float(today['actual_focus_minutes'].sum())

    def last_session_end(self) -> Optional[datetime]:
        """When the most recent session was recorded, if any."""
        df = self.load_sessions()
        if df.empty:
            return None
        return df['created_at'].iloc[0].to_pydatetime()

    def days_since_last_session(self, now: Optional[datetime] = None) -> int:
        last_end = self.last_session_end()
        if last_end is None:
            return 0
        now = now or datetime.now()
        return max(0, (now - last_end).days)

    def delete_all(self):
        with self.db_engine.begin() as conn:
            conn.execute(text("DELETE FROM focus_sessions"))
        logger.info("Deleted all stored sessions")
