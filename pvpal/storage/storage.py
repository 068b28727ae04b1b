"""SQLite storage implementation."""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import CommunityConfig, Participant, Session, TurnRecord


WEEKDAYS = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)


def day_rank(today: datetime) -> tuple[str, list]:
    """SQL ordering expression (and its params) for relative day words."""
    ranks = {"today": 0, "tomorrow": 1}
    for index, name in enumerate(WEEKDAYS):
        ranks[name] = (index - today.weekday()) % 7
    cases = " ".join("WHEN ? THEN ?" for _ in ranks)
    params: list = []
    for name, rank in ranks.items():
        params.extend([name, rank])
    return f"CASE lower(date) {cases} ELSE 7 END", params


class IStorage(Protocol):
    """Persistent storage for sessions, community settings and turn logs (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Sessions
    async def create_session(self, session: Session) -> Session:
        """Insert a session, assigning an id if it has none."""
        ...

    async def get_session(self, session_id: str) -> Session | None:
        """Get a session with its participants."""
        ...

    async def find_sessions(
        self,
        community_id: str,
        game_mode: str | None = None,
        date: str | None = None,
        limit: int = 25,
        today: datetime | None = None,
    ) -> list[Session]:
        """Find sessions in a community, soonest first."""
        ...

    # Participation
    async def set_participation(self, participant: Participant) -> None:
        """Insert or replace a user's status for a session."""
        ...

    async def list_participants(self, session_id: str) -> list[Participant]:
        """Get all participants of a session."""
        ...

    # Community config
    async def get_community_config(self, community_id: str) -> CommunityConfig | None:
        """Get the settings of a community."""
        ...

    async def save_community_config(self, config: CommunityConfig) -> None:
        """Insert or replace the settings of a community."""
        ...

    # Conversation logs
    async def save_conversation_log(self, record: TurnRecord) -> None:
        """Persist one handled turn."""
        ...

    async def get_conversation_logs(
        self, limit: int = 100, user_id: str | None = None
    ) -> list[TurnRecord]:
        """Get logged turns (newest first)."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


def _parse_ts(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    async def init(self) -> None:
        """Initialize database and create tables."""
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)
        await self._conn.execute("PRAGMA foreign_keys = ON")

        # Read and execute schema
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    # Sessions
    async def create_session(self, session: Session) -> Session:
        """Insert a session, assigning an id if it has none."""
        conn = self._require_conn()

        if not session.session_id:
            session.session_id = str(uuid.uuid4())

        await conn.execute(
            """
            INSERT INTO sessions
            (session_id, community_id, game_mode, date, time, host_id, notes, tier)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session.session_id,
                session.community_id,
                session.game_mode,
                session.date,
                session.time,
                session.host_id,
                session.notes,
                session.tier,
            ),
        )
        # The host is the first participant
        await conn.execute(
            """
            INSERT OR REPLACE INTO session_participants
            (session_id, user_id, status, role, updated_at)
            VALUES (?, ?, 'join', NULL, CURRENT_TIMESTAMP)
            """,
            (session.session_id, session.host_id),
        )
        await conn.commit()

        session.participants = await self.list_participants(session.session_id)
        return session

    async def get_session(self, session_id: str) -> Session | None:
        """Get a session with its participants."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT session_id, community_id, game_mode, date, time, host_id, notes, tier
            FROM sessions
            WHERE session_id = ?
            """,
            (session_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        session = Session(
            session_id=row[0],
            community_id=row[1],
            game_mode=row[2],
            date=row[3],
            time=row[4],
            host_id=row[5],
            notes=row[6] or "",
            tier=row[7],
        )
        session.participants = await self.list_participants(session_id)
        return session

    async def find_sessions(
        self,
        community_id: str,
        game_mode: str | None = None,
        date: str | None = None,
        limit: int = 25,
        today: datetime | None = None,
    ) -> list[Session]:
        """Find sessions in a community, soonest first.

        Day words are ranked from ``today``'s weekday (default: now), so
        "monday" asked on a Saturday sorts after "sunday". Other date text
        sorts last.
        """
        conn = self._require_conn()

        # Build query dynamically
        conditions = ["community_id = ?"]
        params: list = [community_id]

        if game_mode:
            conditions.append("game_mode = ? COLLATE NOCASE")
            params.append(game_mode)
        if date:
            conditions.append("date = ? COLLATE NOCASE")
            params.append(date)

        rank_sql, rank_params = day_rank(today or datetime.now())
        query = f"""
            SELECT session_id, community_id, game_mode, date, time, host_id, notes, tier
            FROM sessions
            WHERE {' AND '.join(conditions)}
            ORDER BY {rank_sql}, date ASC, time ASC
            LIMIT ?
        """
        params.extend(rank_params)
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            Session(
                session_id=row[0],
                community_id=row[1],
                game_mode=row[2],
                date=row[3],
                time=row[4],
                host_id=row[5],
                notes=row[6] or "",
                tier=row[7],
            )
            for row in rows
        ]

    # Participation
    async def set_participation(self, participant: Participant) -> None:
        """Insert or replace a user's status for a session."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO session_participants
            (session_id, user_id, status, role, updated_at)
            VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
            """,
            (
                participant.session_id,
                participant.user_id,
                participant.status,
                participant.role,
            ),
        )
        await conn.commit()

    async def list_participants(self, session_id: str) -> list[Participant]:
        """Get all participants of a session."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT session_id, user_id, status, role
            FROM session_participants
            WHERE session_id = ?
            ORDER BY updated_at ASC, user_id ASC
            """,
            (session_id,),
        )
        rows = await cursor.fetchall()

        return [
            Participant(session_id=row[0], user_id=row[1], status=row[2], role=row[3])
            for row in rows
        ]

    # Community config
    async def get_community_config(self, community_id: str) -> CommunityConfig | None:
        """Get the settings of a community."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT community_id, schedule_channel_id, events_channel_id,
                   regular_channel_id, persona, sass_level
            FROM community_configs
            WHERE community_id = ?
            """,
            (community_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return CommunityConfig(
            community_id=row[0],
            schedule_channel_id=row[1],
            events_channel_id=row[2],
            regular_channel_id=row[3],
            persona=row[4],
            sass_level=row[5],
        )

    async def save_community_config(self, config: CommunityConfig) -> None:
        """Insert or replace the settings of a community."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO community_configs
            (community_id, schedule_channel_id, events_channel_id,
             regular_channel_id, persona, sass_level, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            """,
            (
                config.community_id,
                config.schedule_channel_id,
                config.events_channel_id,
                config.regular_channel_id,
                config.persona,
                config.sass_level,
            ),
        )
        await conn.commit()

    # Conversation logs
    async def save_conversation_log(self, record: TurnRecord) -> None:
        """Persist one handled turn."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            INSERT INTO conversation_logs
            (user_id, channel_id, community_id, channel_type, message,
             detected_intent, confidence, success, response, latency_ms,
             error, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.user_id,
                record.channel_id,
                record.community_id,
                record.channel_type,
                record.message,
                record.detected_intent,
                record.confidence,
                int(record.success),
                record.response,
                record.latency_ms,
                record.error,
                record.timestamp.isoformat(),
            ),
        )
        await conn.commit()
        record.id = cursor.lastrowid

    async def get_conversation_logs(
        self, limit: int = 100, user_id: str | None = None
    ) -> list[TurnRecord]:
        """Get logged turns (newest first)."""
        conn = self._require_conn()

        where_clause = "WHERE user_id = ?" if user_id else ""
        params: list = [user_id] if user_id else []
        params.append(limit)

        cursor = await conn.execute(
            f"""
            SELECT id, user_id, channel_id, community_id, channel_type, message,
                   detected_intent, confidence, success, response, latency_ms,
                   error, timestamp
            FROM conversation_logs
            {where_clause}
            ORDER BY timestamp DESC, id DESC
            LIMIT ?
            """,
            params,
        )
        rows = await cursor.fetchall()

        return [
            TurnRecord(
                id=row[0],
                user_id=row[1],
                channel_id=row[2],
                community_id=row[3],
                channel_type=row[4],
                message=row[5],
                detected_intent=row[6],
                confidence=row[7],
                success=bool(row[8]),
                response=row[9],
                latency_ms=row[10],
                error=row[11],
                timestamp=_parse_ts(row[12]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        tables = [
            "session_participants",
            "sessions",
            "community_configs",
            "conversation_logs",
        ]

        for table in tables:
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
