"""SQLite implementation of the route store."""

from __future__ import annotations

import json
import math
import sqlite3
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from explox.domain.models import Activity, GeoPoint, RoutePart, SearchResult
from explox.persistence.models import PartCriteria
from explox.planner.distance import haversine
from explox.shared.exceptions import PersistenceError

_METRES_PER_DEGREE = 111_320.0
_PART_COLUMNS = (
    "part_id, title, body, location, distance, is_route, is_generated, "
    "user_id, external_id, source_part_ids_json, created_at"
)


def _to_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def _from_json(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return default


def _new_id() -> str:
    return uuid.uuid4().hex


class SQLiteRouteRepository:
    backend = "sqlite"

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=5.0)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA foreign_keys=ON;")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                conn = self._connect()
            except sqlite3.Error as exc:
                raise PersistenceError(f"cannot open {self._db_path}: {exc}") from exc
            try:
                with conn:
                    yield conn
            except sqlite3.Error as exc:
                raise PersistenceError(f"sqlite operation failed: {exc}") from exc
            finally:
                conn.close()

    def _init_schema(self) -> None:
        with self._transaction() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS geo_points (
                    geo_id TEXT PRIMARY KEY,
                    lng REAL NOT NULL,
                    lat REAL NOT NULL,
                    name TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS parts (
                    part_id TEXT PRIMARY KEY,
                    title TEXT NOT NULL DEFAULT '',
                    body TEXT NOT NULL DEFAULT '',
                    location TEXT NOT NULL DEFAULT '',
                    distance REAL NOT NULL,
                    is_route INTEGER NOT NULL,
                    is_generated INTEGER NOT NULL,
                    user_id TEXT,
                    external_id TEXT,
                    source_part_ids_json TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS part_geo (
                    part_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    geo_id TEXT NOT NULL,
                    PRIMARY KEY (part_id, position),
                    FOREIGN KEY(part_id) REFERENCES parts(part_id),
                    FOREIGN KEY(geo_id) REFERENCES geo_points(geo_id)
                );

                CREATE TABLE IF NOT EXISTS geo_refs (
                    geo_id TEXT NOT NULL,
                    owner_type TEXT NOT NULL,
                    owner_id TEXT NOT NULL,
                    PRIMARY KEY (geo_id, owner_type, owner_id),
                    FOREIGN KEY(geo_id) REFERENCES geo_points(geo_id)
                );

                CREATE TABLE IF NOT EXISTS activities (
                    activity_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS activity_geo (
                    activity_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    geo_id TEXT NOT NULL,
                    PRIMARY KEY (activity_id, position),
                    FOREIGN KEY(activity_id) REFERENCES activities(activity_id),
                    FOREIGN KEY(geo_id) REFERENCES geo_points(geo_id)
                );

                CREATE TABLE IF NOT EXISTS search_results (
                    result_id TEXT PRIMARY KEY,
                    user_id TEXT,
                    distance REAL NOT NULL,
                    query_json TEXT NOT NULL,
                    generated_route_ids_json TEXT NOT NULL,
                    familiarity_scores_json TEXT NOT NULL,
                    accepted_route_ids_json TEXT NOT NULL,
                    reused_route_ids_json TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL
                );

                CREATE UNIQUE INDEX IF NOT EXISTS idx_parts_generated_identity
                    ON parts(external_id, is_generated) WHERE external_id IS NOT NULL;
                CREATE INDEX IF NOT EXISTS idx_parts_distance ON parts(is_route, is_generated, distance);
                CREATE INDEX IF NOT EXISTS idx_geo_points_lat_lng ON geo_points(lat, lng);
                CREATE INDEX IF NOT EXISTS idx_activities_user_id ON activities(user_id);
                """
            )

    # ── parts ──────────────────────────────────────────

    @staticmethod
    def _criteria_sql(criteria: PartCriteria) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if criteria.id is not None:
            clauses.append("part_id = ?")
            params.append(criteria.id)
        if criteria.external_id is not None:
            clauses.append("external_id = ?")
            params.append(criteria.external_id)
        if criteria.min_distance is not None:
            clauses.append("distance > ?")
            params.append(criteria.min_distance)
        if criteria.max_distance is not None:
            clauses.append("distance < ?")
            params.append(criteria.max_distance)
        if criteria.is_route is not None:
            clauses.append("is_route = ?")
            params.append(int(criteria.is_route))
        if criteria.is_generated is not None:
            clauses.append("is_generated = ?")
            params.append(int(criteria.is_generated))
        if criteria.user_id is not None:
            clauses.append("user_id = ?")
            params.append(criteria.user_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    @staticmethod
    def _load_part_geo(conn: sqlite3.Connection, part_ids: list[str]) -> dict[str, list[GeoPoint]]:
        if not part_ids:
            return {}
        marks = ",".join("?" for _ in part_ids)
        rows = conn.execute(
            f"""
            SELECT pg.part_id, g.geo_id, g.lng, g.lat, g.name
            FROM part_geo pg
            JOIN geo_points g ON g.geo_id = pg.geo_id
            WHERE pg.part_id IN ({marks})
            ORDER BY pg.part_id, pg.position
            """,
            part_ids,
        ).fetchall()
        geo: dict[str, list[GeoPoint]] = {pid: [] for pid in part_ids}
        for part_id, geo_id, lng, lat, name in rows:
            geo[part_id].append(GeoPoint(id=geo_id, lng=lng, lat=lat, name=name))
        return geo

    @staticmethod
    def _row_to_part(row: tuple[Any, ...], geo: list[GeoPoint]) -> RoutePart:
        return RoutePart(
            id=row[0],
            title=row[1],
            body=row[2],
            location=row[3],
            distance=row[4],
            is_route=bool(row[5]),
            is_generated=bool(row[6]),
            user_id=row[7],
            external_id=row[8],
            source_part_ids=_from_json(row[9], []),
            created_at=row[10],
            geo=geo,
        )

    def _select_parts(
        self,
        conn: sqlite3.Connection,
        criteria: PartCriteria,
        *,
        detailed: bool,
        limit: int,
    ) -> list[RoutePart]:
        where, params = self._criteria_sql(criteria)
        rows = conn.execute(
            f"SELECT {_PART_COLUMNS} FROM parts {where} ORDER BY created_at DESC, rowid DESC LIMIT ?",
            [*params, max(1, limit)],
        ).fetchall()
        geo = self._load_part_geo(conn, [row[0] for row in rows]) if detailed else {}
        return [self._row_to_part(row, geo.get(row[0], [])) for row in rows]

    def list_parts(self, criteria: PartCriteria, *, detailed: bool = True, limit: int = 30) -> list[RoutePart]:
        with self._transaction() as conn:
            return self._select_parts(conn, criteria, detailed=detailed, limit=limit)

    def load_part(self, criteria: PartCriteria) -> RoutePart | None:
        with self._transaction() as conn:
            parts = self._select_parts(conn, criteria, detailed=True, limit=1)
        return parts[0] if parts else None

    @staticmethod
    def _write_part(conn: sqlite3.Connection, part: RoutePart, *, upsert: bool) -> int:
        conflict = (
            """
            ON CONFLICT(part_id) DO UPDATE SET
                title=excluded.title,
                body=excluded.body,
                location=excluded.location,
                distance=excluded.distance,
                is_route=excluded.is_route,
                is_generated=excluded.is_generated,
                user_id=excluded.user_id,
                external_id=excluded.external_id,
                source_part_ids_json=excluded.source_part_ids_json
            """
            if upsert
            else "ON CONFLICT DO NOTHING"
        )
        cursor = conn.execute(
            f"""
            INSERT INTO parts ({_PART_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            {conflict}
            """,
            (
                part.id,
                part.title,
                part.body,
                part.location,
                part.distance,
                int(part.is_route),
                int(part.is_generated),
                part.user_id,
                part.external_id,
                _to_json(part.source_part_ids),
                part.created_at,
            ),
        )
        return cursor.rowcount

    @staticmethod
    def _link_geo(conn: sqlite3.Connection, table: str, owner_column: str, owner_id: str, geo: list[GeoPoint]) -> None:
        conn.execute(f"DELETE FROM {table} WHERE {owner_column} = ?", (owner_id,))
        conn.executemany(
            f"INSERT INTO {table} ({owner_column}, position, geo_id) VALUES (?, ?, ?)",
            [(owner_id, position, point.id) for position, point in enumerate(geo)],
        )

    def save_part(self, part: RoutePart) -> RoutePart:
        """Create or update a part; GeoPoints without an id are saved first."""
        saved = part if part.id else part.model_copy(update={"id": _new_id()})
        with self._transaction() as conn:
            self._write_part(conn, saved, upsert=True)
            if saved.geo:
                geo = [point if point.id else self._write_geo_point(conn, point) for point in saved.geo]
                self._link_geo(conn, "part_geo", "part_id", saved.id, geo)
                saved = saved.model_copy(update={"geo": geo})
        return saved

    def upsert_generated_part(self, part: RoutePart) -> tuple[RoutePart, bool]:
        """Insert a generated part unless one with its identity exists.

        A new part is written together with its GeoPoints, each back-referencing
        the part, in one transaction: either the route lands with its full
        geometry or nothing does. Returns the stored part and whether it was
        created by this call.
        """
        if not part.external_id:
            raise ValueError("generated parts need an external_id")
        candidate = part if part.id else part.model_copy(update={"id": _new_id()})
        with self._transaction() as conn:
            if self._write_part(conn, candidate, upsert=False) == 1:
                geo = [
                    self._write_geo_point(
                        conn,
                        point.model_copy(update={"route_ids": [*point.route_ids, candidate.id]})
                        if candidate.id not in point.route_ids
                        else point,
                    )
                    for point in candidate.geo
                ]
                self._link_geo(conn, "part_geo", "part_id", candidate.id, geo)
                return candidate.model_copy(update={"geo": geo}), True
            existing = self._select_parts(
                conn,
                PartCriteria(external_id=part.external_id, is_generated=part.is_generated),
                detailed=True,
                limit=1,
            )
        if not existing:
            raise PersistenceError(f"part id collision for {candidate.id}")
        return existing[0], False

    # ── geo points ─────────────────────────────────────

    @staticmethod
    def _write_geo_point(conn: sqlite3.Connection, point: GeoPoint) -> GeoPoint:
        saved = point if point.id else point.model_copy(update={"id": _new_id()})
        conn.execute(
            """
            INSERT INTO geo_points (geo_id, lng, lat, name) VALUES (?, ?, ?, ?)
            ON CONFLICT(geo_id) DO UPDATE SET lng=excluded.lng, lat=excluded.lat, name=excluded.name
            """,
            (saved.id, saved.lng, saved.lat, saved.name),
        )
        refs = [(saved.id, "route", owner) for owner in saved.route_ids]
        refs += [(saved.id, "activity", owner) for owner in saved.activity_ids]
        conn.executemany(
            "INSERT OR IGNORE INTO geo_refs (geo_id, owner_type, owner_id) VALUES (?, ?, ?)",
            refs,
        )
        return saved

    def save_geo_point(self, point: GeoPoint) -> GeoPoint:
        with self._transaction() as conn:
            return self._write_geo_point(conn, point)

    def find_within_radius(self, lat: float, lng: float, distance_m: float, limit: int = 30) -> list[GeoPoint]:
        """Points within `distance_m` of (lat, lng), farthest first."""
        dlat = distance_m / _METRES_PER_DEGREE
        cos_lat = max(math.cos(math.radians(lat)), 1e-6)
        dlng = min(180.0, distance_m / (_METRES_PER_DEGREE * cos_lat))
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT geo_id, lng, lat, name
                FROM geo_points
                WHERE lat BETWEEN ? AND ? AND lng BETWEEN ? AND ?
                """,
                (lat - dlat, lat + dlat, lng - dlng, lng + dlng),
            ).fetchall()
            within = [
                (haversine(lat, lng, row[2], row[1]), row)
                for row in rows
            ]
            within = [item for item in within if item[0] <= distance_m]
            within.sort(key=lambda item: item[0], reverse=True)
            within = within[: max(1, limit)]

            ids = [row[0] for _, row in within]
            refs: dict[str, dict[str, list[str]]] = {gid: {"route": [], "activity": []} for gid in ids}
            if ids:
                marks = ",".join("?" for _ in ids)
                for geo_id, owner_type, owner_id in conn.execute(
                    f"SELECT geo_id, owner_type, owner_id FROM geo_refs WHERE geo_id IN ({marks})",
                    ids,
                ).fetchall():
                    refs[geo_id].setdefault(owner_type, []).append(owner_id)

        return [
            GeoPoint(
                id=row[0],
                lng=row[1],
                lat=row[2],
                name=row[3],
                route_ids=refs[row[0]]["route"],
                activity_ids=refs[row[0]]["activity"],
            )
            for _, row in within
        ]

    # ── activities ─────────────────────────────────────

    def save_activity(self, activity: Activity) -> Activity:
        saved = activity if activity.id else activity.model_copy(update={"id": _new_id()})
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO activities (activity_id, user_id, created_at) VALUES (?, ?, ?)
                ON CONFLICT(activity_id) DO UPDATE SET user_id=excluded.user_id
                """,
                (saved.id, saved.user_id, saved.created_at),
            )
            geo = [
                self._write_geo_point(
                    conn,
                    point.model_copy(update={"activity_ids": sorted({*point.activity_ids, saved.id})}),
                )
                for point in saved.geo
            ]
            self._link_geo(conn, "activity_geo", "activity_id", saved.id, geo)
        return saved.model_copy(update={"geo": geo})

    def list_activities(self, user_id: str) -> list[Activity]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT activity_id, user_id, created_at FROM activities WHERE user_id = ? ORDER BY created_at DESC",
                (user_id,),
            ).fetchall()
            geo: dict[str, list[GeoPoint]] = {row[0]: [] for row in rows}
            if rows:
                marks = ",".join("?" for _ in rows)
                for activity_id, geo_id, lng, lat, name in conn.execute(
                    f"""
                    SELECT ag.activity_id, g.geo_id, g.lng, g.lat, g.name
                    FROM activity_geo ag
                    JOIN geo_points g ON g.geo_id = ag.geo_id
                    WHERE ag.activity_id IN ({marks})
                    ORDER BY ag.activity_id, ag.position
                    """,
                    [row[0] for row in rows],
                ).fetchall():
                    geo[activity_id].append(GeoPoint(id=geo_id, lng=lng, lat=lat, name=name))

        return [
            Activity(id=row[0], user_id=row[1], created_at=row[2], geo=geo[row[0]])
            for row in rows
        ]

    # ── search results ─────────────────────────────────

    def save_search_result(self, result: SearchResult) -> SearchResult:
        saved = result if result.id else result.model_copy(update={"id": _new_id()})
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO search_results (
                    result_id, user_id, distance, query_json, generated_route_ids_json,
                    familiarity_scores_json, accepted_route_ids_json, reused_route_ids_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    saved.id,
                    saved.user_id,
                    saved.distance,
                    _to_json(saved.query),
                    _to_json(saved.generated_route_ids),
                    _to_json(saved.familiarity_scores),
                    _to_json(saved.accepted_route_ids),
                    _to_json(saved.reused_route_ids),
                    saved.created_at,
                ),
            )
        return saved

    def load_search_result(self, result_id: str) -> SearchResult | None:
        with self._transaction() as conn:
            row = conn.execute(
                """
                SELECT result_id, user_id, distance, query_json, generated_route_ids_json,
                       familiarity_scores_json, accepted_route_ids_json, reused_route_ids_json, created_at
                FROM search_results
                WHERE result_id = ?
                LIMIT 1
                """,
                (result_id,),
            ).fetchone()
        if row is None:
            return None
        return SearchResult(
            id=row[0],
            user_id=row[1],
            distance=row[2],
            query=_from_json(row[3], {}),
            generated_route_ids=_from_json(row[4], []),
            familiarity_scores=_from_json(row[5], []),
            accepted_route_ids=_from_json(row[6], []),
            reused_route_ids=_from_json(row[7], []),
            created_at=row[8],
        )


__all__ = ["SQLiteRouteRepository"]
