"""SQLite implementation of the capacity data gateway."""

from __future__ import annotations

import json
import random
import sqlite3
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

import pandas as pd

from capacity_engine.domain.periods import DateRange, period_label
from capacity_engine.repository.gateway import (
    AllocationFilter,
    AllocationRecord,
    BottleneckFilter,
    BottleneckRecord,
    CapacitySnapshotRecord,
    EmployeeSkillRecord,
    GatewayError,
    SkillDemandRecord,
    SkillSupplyRecord,
    SkillUsageRecord,
)
from capacity_engine.utils.config import Settings, get_settings
from capacity_engine.utils.logger import get_logger


logger = get_logger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS departments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS employees (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        department_id INTEGER,
        default_hours REAL NOT NULL DEFAULT 40 CHECK (default_hours >= 0),
        is_active INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0, 1)),
        FOREIGN KEY (department_id) REFERENCES departments(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS skills (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        category TEXT NOT NULL DEFAULT 'technical'
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS employee_skills (
        employee_id INTEGER NOT NULL,
        skill_id INTEGER NOT NULL,
        proficiency_level INTEGER NOT NULL CHECK (proficiency_level BETWEEN 1 AND 5),
        PRIMARY KEY (employee_id, skill_id),
        FOREIGN KEY (employee_id) REFERENCES employees(id),
        FOREIGN KEY (skill_id) REFERENCES skills(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS projects (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'planning'
            CHECK (status IN ('planning', 'active', 'completed', 'on_hold'))
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS project_skill_requirements (
        project_id INTEGER NOT NULL,
        skill_id INTEGER NOT NULL,
        quantity INTEGER NOT NULL DEFAULT 1 CHECK (quantity >= 0),
        PRIMARY KEY (project_id, skill_id),
        FOREIGN KEY (project_id) REFERENCES projects(id),
        FOREIGN KEY (skill_id) REFERENCES skills(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS allocations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        employee_id INTEGER NOT NULL,
        project_id INTEGER NOT NULL,
        allocated_hours REAL NOT NULL CHECK (allocated_hours >= 0),
        start_date TEXT NOT NULL,
        end_date TEXT,
        is_active INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0, 1)),
        FOREIGN KEY (employee_id) REFERENCES employees(id),
        FOREIGN KEY (project_id) REFERENCES projects(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS capacity_snapshots (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        snapshot_date TEXT NOT NULL,
        overall_utilization REAL NOT NULL,
        available_capacity_hours REAL NOT NULL,
        committed_capacity_hours REAL NOT NULL,
        department_id INTEGER,
        FOREIGN KEY (department_id) REFERENCES departments(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS capacity_bottlenecks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        bottleneck_type TEXT NOT NULL
            CHECK (bottleneck_type IN ('skill', 'department', 'resource', 'time')),
        affected_resource TEXT NOT NULL,
        severity TEXT NOT NULL CHECK (severity IN ('low', 'medium', 'high', 'critical')),
        impact_score REAL NOT NULL,
        estimated_duration_days INTEGER NOT NULL DEFAULT 0,
        affected_projects TEXT NOT NULL DEFAULT '[]',
        root_causes TEXT NOT NULL DEFAULT '[]',
        resolution_actions TEXT NOT NULL DEFAULT '[]',
        status TEXT NOT NULL DEFAULT 'active'
            CHECK (status IN ('active', 'mitigated', 'resolved')),
        identified_date TEXT NOT NULL,
        resolution_date TEXT
    );
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_allocations_employee_dates
    ON allocations(employee_id, start_date, end_date);
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_snapshots_date
    ON capacity_snapshots(snapshot_date, department_id);
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_bottlenecks_status_impact
    ON capacity_bottlenecks(status, impact_score);
    """,
)

_SEED_DEPARTMENTS = ("Engineering", "Data", "Design", "Operations")
_SEED_SKILLS = (
    ("Python", "technical"),
    ("React", "technical"),
    ("DevOps", "technical"),
    ("Machine Learning", "technical"),
    ("Architecture", "technical"),
    ("Communication", "soft"),
    ("Leadership", "soft"),
    ("Finance", "domain"),
    ("Healthcare", "domain"),
)
_SEED_PROJECTS = (
    ("Platform Migration", "active"),
    ("Claims Analytics", "active"),
    ("Mobile Redesign", "active"),
    ("Forecasting Pilot", "planning"),
    ("Data Lakehouse", "planning"),
    ("Billing Revamp", "on_hold"),
    ("Legacy Sunset", "completed"),
)
_SEED_FIRST_NAMES = ("Alex", "Sam", "Jordan", "Riley", "Casey", "Morgan", "Taylor", "Jamie")
_SEED_LAST_NAMES = ("Lee", "Patel", "Garcia", "Kim", "Nguyen", "Okafor", "Rossi", "Silva")


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    return date.fromisoformat(str(value)[:10])


def _json_tuple(value: Any) -> tuple:
    if value is None or value == "":
        return ()
    return tuple(json.loads(value))


class DataRepository:
    """Encapsulates SQLite access so analytics stay storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def _query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        try:
            with self._connect() as conn:
                return conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise GatewayError(f"Capacity data query failed: {exc}") from exc

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        with self._connect() as conn:
            cursor = conn.execute(sql, tuple(params))
            conn.commit()
            return int(cursor.lastrowid)

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                for statement in _SCHEMA:
                    cursor.execute(statement)
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_synthetic_data(self) -> None:
        """Seed deterministic synthetic history only when tables are empty."""
        random.seed(self._settings.synthetic_random_seed)
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute("SELECT COUNT(*) AS count FROM employees;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Synthetic data already present; skipping seed")
                    return

                today = datetime.now(timezone.utc).date()
                department_ids = []
                for name in _SEED_DEPARTMENTS:
                    cursor.execute("INSERT INTO departments (name) VALUES (?);", (name,))
                    department_ids.append(int(cursor.lastrowid))

                skill_ids = []
                for name, category in _SEED_SKILLS:
                    cursor.execute(
                        "INSERT INTO skills (name, category) VALUES (?, ?);",
                        (name, category),
                    )
                    skill_ids.append(int(cursor.lastrowid))

                project_ids = []
                for name, status in _SEED_PROJECTS:
                    cursor.execute(
                        "INSERT INTO projects (name, status) VALUES (?, ?);",
                        (name, status),
                    )
                    project_id = int(cursor.lastrowid)
                    project_ids.append(project_id)
                    for skill_id in random.sample(skill_ids, k=3):
                        cursor.execute(
                            """
                            INSERT INTO project_skill_requirements (project_id, skill_id, quantity)
                            VALUES (?, ?, ?);
                            """,
                            (project_id, skill_id, random.randint(1, 6)),
                        )

                employee_ids = []
                for index in range(self._settings.synthetic_employee_count):
                    cursor.execute(
                        """
                        INSERT INTO employees (first_name, last_name, department_id, default_hours)
                        VALUES (?, ?, ?, ?);
                        """,
                        (
                            _SEED_FIRST_NAMES[index % len(_SEED_FIRST_NAMES)],
                            _SEED_LAST_NAMES[(index * 3) % len(_SEED_LAST_NAMES)],
                            department_ids[index % len(department_ids)],
                            random.choice((32.0, 40.0, 40.0, 40.0)),
                        ),
                    )
                    employee_id = int(cursor.lastrowid)
                    employee_ids.append(employee_id)
                    for skill_id in random.sample(skill_ids, k=random.randint(2, 4)):
                        cursor.execute(
                            """
                            INSERT INTO employee_skills (employee_id, skill_id, proficiency_level)
                            VALUES (?, ?, ?);
                            """,
                            (employee_id, skill_id, random.randint(1, 5)),
                        )

                history_start = today - timedelta(days=30 * self._settings.synthetic_history_months)
                allocation_rows = []
                for employee_id in employee_ids:
                    for project_id in random.sample(project_ids[:5], k=random.randint(1, 2)):
                        start = history_start + timedelta(days=random.randint(0, 300))
                        end = start + timedelta(days=random.randint(60, 240))
                        allocation_rows.append(
                            (
                                employee_id,
                                project_id,
                                float(random.choice((8, 12, 16, 20, 24, 32))),
                                start.isoformat(),
                                end.isoformat() if end < today else None,
                            )
                        )
                cursor.executemany(
                    """
                    INSERT INTO allocations (employee_id, project_id, allocated_hours, start_date, end_date)
                    VALUES (?, ?, ?, ?, ?);
                    """,
                    allocation_rows,
                )

                snapshot_rows = []
                for months_back in range(self._settings.synthetic_history_months, 0, -1):
                    snapshot_day = (
                        pd.Timestamp(today) - pd.DateOffset(months=months_back)
                    ).date()
                    seasonal = 8.0 if snapshot_day.month in (3, 10, 11) else 0.0
                    seasonal -= 10.0 if snapshot_day.month in (7, 8, 12) else 0.0
                    utilization = 68.0 + seasonal + random.uniform(-3.0, 3.0)
                    available = 3600.0 + random.uniform(-120.0, 120.0)
                    snapshot_rows.append(
                        (
                            snapshot_day.isoformat(),
                            round(utilization, 2),
                            round(available, 2),
                            round(available * utilization / 100.0, 2),
                        )
                    )
                cursor.executemany(
                    """
                    INSERT INTO capacity_snapshots (
                        snapshot_date,
                        overall_utilization,
                        available_capacity_hours,
                        committed_capacity_hours
                    )
                    VALUES (?, ?, ?, ?);
                    """,
                    snapshot_rows,
                )

                bottleneck_rows = [
                    ("skill", "Machine Learning", "high", 78.0, 21, "active", 3, None),
                    ("department", "Data", "medium", 52.0, 5, "active", 12, None),
                    ("resource", "Overall capacity", "critical", 91.0, 14, "active", 2, None),
                    ("skill", "DevOps", "medium", 45.0, 10, "resolved", 120, 40),
                    ("time", "Quarter-end release", "low", 30.0, 7, "mitigated", 90, 60),
                ]
                for (
                    bottleneck_type,
                    resource,
                    severity,
                    impact,
                    duration,
                    status,
                    identified_days_ago,
                    resolved_days_ago,
                ) in bottleneck_rows:
                    cursor.execute(
                        """
                        INSERT INTO capacity_bottlenecks (
                            bottleneck_type, affected_resource, severity, impact_score,
                            estimated_duration_days, affected_projects, root_causes,
                            resolution_actions, status, identified_date, resolution_date
                        )
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                        """,
                        (
                            bottleneck_type,
                            resource,
                            severity,
                            impact,
                            duration,
                            json.dumps(random.sample(project_ids[:5], k=2)),
                            json.dumps(["Demand growth outpacing hiring"]),
                            json.dumps(["Rebalance allocations", "Open requisitions"]),
                            status,
                            (today - timedelta(days=identified_days_ago)).isoformat(),
                            (
                                (today - timedelta(days=resolved_days_ago)).isoformat()
                                if resolved_days_ago is not None
                                else None
                            ),
                        ),
                    )
                conn.commit()
            logger.info(
                "Synthetic seed completed | employees=%s | allocations=%s | snapshots=%s",
                len(employee_ids),
                len(allocation_rows),
                len(snapshot_rows),
            )
        except sqlite3.Error as exc:
            raise RuntimeError(f"Synthetic data seeding failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Gateway reads
    # ------------------------------------------------------------------

    def fetch_capacity_snapshots(
        self,
        date_range: DateRange,
        granularity: str = "monthly",
    ) -> List[CapacitySnapshotRecord]:
        """Return organization-wide snapshots averaged per calendar bucket."""
        rows = self._query(
            """
            SELECT
                snapshot_date,
                overall_utilization,
                available_capacity_hours,
                committed_capacity_hours
            FROM capacity_snapshots
            WHERE department_id IS NULL
              AND snapshot_date >= ?
              AND snapshot_date <= ?
            ORDER BY snapshot_date ASC;
            """,
            (date_range.start.isoformat(), date_range.end.isoformat()),
        )
        if not rows:
            return []

        frame = pd.DataFrame([dict(row) for row in rows])
        frame["snapshot_date"] = pd.to_datetime(frame["snapshot_date"])
        frame["period"] = [
            period_label(value.date(), granularity) for value in frame["snapshot_date"]
        ]
        frame["month"] = frame["snapshot_date"].dt.month
        grouped = (
            frame.groupby("period", sort=True)
            .agg(
                month=("month", "first"),
                avg_utilization=("overall_utilization", "mean"),
                avg_capacity=("available_capacity_hours", "mean"),
                avg_demand=("committed_capacity_hours", "mean"),
            )
            .reset_index()
        )
        return [
            CapacitySnapshotRecord(
                period=str(row.period),
                month=int(row.month),
                avg_utilization=float(row.avg_utilization),
                avg_capacity=float(row.avg_capacity),
                avg_demand=float(row.avg_demand),
            )
            for row in grouped.itertuples(index=False)
        ]

    def fetch_bottlenecks(self, bottleneck_filter: BottleneckFilter) -> List[BottleneckRecord]:
        clauses: list[str] = []
        params: list[Any] = []
        if bottleneck_filter.statuses:
            placeholders = ",".join("?" for _ in bottleneck_filter.statuses)
            clauses.append(f"status IN ({placeholders})")
            params.extend(bottleneck_filter.statuses)
        if bottleneck_filter.severity:
            clauses.append("severity = ?")
            params.append(bottleneck_filter.severity)
        if bottleneck_filter.identified_since is not None:
            clauses.append("identified_date >= ?")
            params.append(bottleneck_filter.identified_since.isoformat())
        if bottleneck_filter.resolved_since is not None:
            clauses.append("resolution_date IS NOT NULL AND resolution_date >= ?")
            params.append(bottleneck_filter.resolved_since.isoformat())

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        if bottleneck_filter.resolved_since is not None:
            order = "ORDER BY resolution_date DESC, id DESC"
        else:
            order = "ORDER BY impact_score DESC, id ASC"
        limit = ""
        if bottleneck_filter.limit is not None:
            limit = "LIMIT ?"
            params.append(int(bottleneck_filter.limit))

        rows = self._query(
            f"""
            SELECT *
            FROM capacity_bottlenecks
            {where}
            {order}
            {limit};
            """,
            params,
        )
        return [
            BottleneckRecord(
                bottleneck_id=int(row["id"]),
                bottleneck_type=str(row["bottleneck_type"]),
                affected_resource=str(row["affected_resource"]),
                severity=str(row["severity"]),
                impact_score=float(row["impact_score"]),
                estimated_duration_days=int(row["estimated_duration_days"]),
                affected_projects=tuple(int(value) for value in _json_tuple(row["affected_projects"])),
                root_causes=tuple(str(value) for value in _json_tuple(row["root_causes"])),
                resolution_actions=tuple(
                    str(value) for value in _json_tuple(row["resolution_actions"])
                ),
                status=str(row["status"]),
                identified_date=_parse_date(row["identified_date"]),
                resolution_date=_parse_date(row["resolution_date"]),
            )
            for row in rows
        ]

    def fetch_skill_supply(self) -> List[SkillSupplyRecord]:
        rows = self._query(
            """
            SELECT
                s.name AS skill,
                s.category AS category,
                COUNT(DISTINCT e.id) AS current_supply,
                AVG(CASE WHEN e.id IS NOT NULL THEN es.proficiency_level END) AS avg_proficiency
            FROM skills AS s
            LEFT JOIN employee_skills AS es ON es.skill_id = s.id
            LEFT JOIN employees AS e ON e.id = es.employee_id AND e.is_active = 1
            GROUP BY s.id
            ORDER BY s.name ASC;
            """
        )
        return [
            SkillSupplyRecord(
                skill=str(row["skill"]),
                category=str(row["category"]),
                current_supply=int(row["current_supply"]),
                avg_proficiency=float(row["avg_proficiency"] or 0.0),
            )
            for row in rows
        ]

    def fetch_skill_demand(self) -> List[SkillDemandRecord]:
        rows = self._query(
            """
            SELECT
                s.name AS skill,
                COUNT(DISTINCT p.id) AS projects_requiring,
                COALESCE(SUM(psr.quantity), 0) AS total_demand
            FROM project_skill_requirements AS psr
            INNER JOIN skills AS s ON s.id = psr.skill_id
            INNER JOIN projects AS p ON p.id = psr.project_id
            WHERE p.status IN ('planning', 'active')
            GROUP BY s.id
            ORDER BY s.name ASC;
            """
        )
        return [
            SkillDemandRecord(
                skill=str(row["skill"]),
                projects_requiring=int(row["projects_requiring"]),
                total_demand=int(row["total_demand"]),
            )
            for row in rows
        ]

    def _skills_by_employee(self) -> dict[int, tuple[str, ...]]:
        rows = self._query(
            """
            SELECT es.employee_id, s.name
            FROM employee_skills AS es
            INNER JOIN skills AS s ON s.id = es.skill_id
            ORDER BY es.employee_id ASC, s.name ASC;
            """
        )
        grouped: dict[int, list[str]] = defaultdict(list)
        for row in rows:
            grouped[int(row["employee_id"])].append(str(row["name"]))
        return {key: tuple(value) for key, value in grouped.items()}

    def _skills_by_project(self) -> dict[int, tuple[str, ...]]:
        rows = self._query(
            """
            SELECT psr.project_id, s.name
            FROM project_skill_requirements AS psr
            INNER JOIN skills AS s ON s.id = psr.skill_id
            ORDER BY psr.project_id ASC, s.name ASC;
            """
        )
        grouped: dict[int, list[str]] = defaultdict(list)
        for row in rows:
            grouped[int(row["project_id"])].append(str(row["name"]))
        return {key: tuple(value) for key, value in grouped.items()}

    def fetch_allocation_records(
        self,
        date_range: DateRange,
        allocation_filter: Optional[AllocationFilter] = None,
    ) -> List[AllocationRecord]:
        """Return allocations overlapping the range, in weekly hours."""
        allocation_filter = allocation_filter or AllocationFilter()
        clauses = [
            "a.start_date <= ?",
            "(a.end_date IS NULL OR a.end_date >= ?)",
            "e.is_active = 1",
        ]
        params: list[Any] = [date_range.end.isoformat(), date_range.start.isoformat()]
        if allocation_filter.active_only:
            clauses.append("a.is_active = 1")
        if allocation_filter.department:
            clauses.append("d.name = ?")
            params.append(allocation_filter.department)

        rows = self._query(
            f"""
            SELECT
                a.employee_id,
                a.project_id,
                a.allocated_hours,
                e.default_hours,
                d.name AS department
            FROM allocations AS a
            INNER JOIN employees AS e ON e.id = a.employee_id
            LEFT JOIN departments AS d ON d.id = e.department_id
            WHERE {' AND '.join(clauses)}
            ORDER BY a.employee_id ASC, a.project_id ASC, a.id ASC;
            """,
            params,
        )
        employee_skills = self._skills_by_employee()
        project_skills = self._skills_by_project()
        return [
            AllocationRecord(
                employee_id=int(row["employee_id"]),
                project_id=int(row["project_id"]),
                allocated_hours=float(row["allocated_hours"]),
                default_hours=float(row["default_hours"]),
                employee_skills=employee_skills.get(int(row["employee_id"]), ()),
                required_skills=project_skills.get(int(row["project_id"]), ()),
                department=str(row["department"]) if row["department"] is not None else None,
            )
            for row in rows
        ]

    def fetch_skill_usage_history(self, date_range: DateRange) -> List[SkillUsageRecord]:
        """Count, per month, the allocations whose project requires each skill."""
        rows = self._query(
            """
            SELECT s.name AS skill, a.start_date, a.end_date
            FROM allocations AS a
            INNER JOIN project_skill_requirements AS psr ON psr.project_id = a.project_id
            INNER JOIN skills AS s ON s.id = psr.skill_id
            WHERE a.start_date <= ?
              AND (a.end_date IS NULL OR a.end_date >= ?);
            """,
            (date_range.end.isoformat(), date_range.start.isoformat()),
        )
        counts: Counter[tuple[str, str]] = Counter()
        for row in rows:
            start = max(_parse_date(row["start_date"]), date_range.start)
            end = min(_parse_date(row["end_date"]) or date_range.end, date_range.end)
            if start > end:
                continue
            for period in pd.period_range(
                start=pd.Timestamp(start), end=pd.Timestamp(end), freq="M"
            ):
                counts[(str(row["skill"]), period.strftime("%Y-%m"))] += 1
        return [
            SkillUsageRecord(skill=skill, period=period, allocation_count=count)
            for (skill, period), count in sorted(counts.items())
        ]

    def fetch_employee_skills(self) -> List[EmployeeSkillRecord]:
        rows = self._query(
            """
            SELECT
                e.id AS employee_id,
                s.name AS skill,
                s.category AS category,
                es.proficiency_level,
                e.default_hours
            FROM employee_skills AS es
            INNER JOIN employees AS e ON e.id = es.employee_id
            INNER JOIN skills AS s ON s.id = es.skill_id
            WHERE e.is_active = 1
            ORDER BY e.id ASC, s.name ASC;
            """
        )
        return [
            EmployeeSkillRecord(
                employee_id=int(row["employee_id"]),
                skill=str(row["skill"]),
                category=str(row["category"]),
                proficiency=int(row["proficiency_level"]),
                default_hours=float(row["default_hours"]),
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Writes used by seeding and tests
    # ------------------------------------------------------------------

    def create_department(self, name: str) -> int:
        return self._execute("INSERT INTO departments (name) VALUES (?);", (name,))

    def create_employee(
        self,
        first_name: str,
        last_name: str,
        department_id: Optional[int] = None,
        default_hours: float = 40.0,
        is_active: bool = True,
    ) -> int:
        return self._execute(
            """
            INSERT INTO employees (first_name, last_name, department_id, default_hours, is_active)
            VALUES (?, ?, ?, ?, ?);
            """,
            (first_name, last_name, department_id, default_hours, int(is_active)),
        )

    def create_skill(self, name: str, category: str = "technical") -> int:
        return self._execute(
            "INSERT INTO skills (name, category) VALUES (?, ?);",
            (name, category),
        )

    def add_employee_skill(self, employee_id: int, skill_id: int, proficiency_level: int) -> None:
        self._execute(
            """
            INSERT INTO employee_skills (employee_id, skill_id, proficiency_level)
            VALUES (?, ?, ?);
            """,
            (employee_id, skill_id, proficiency_level),
        )

    def create_project(self, name: str, status: str = "active") -> int:
        return self._execute(
            "INSERT INTO projects (name, status) VALUES (?, ?);",
            (name, status),
        )

    def add_project_requirement(self, project_id: int, skill_id: int, quantity: int = 1) -> None:
        self._execute(
            """
            INSERT INTO project_skill_requirements (project_id, skill_id, quantity)
            VALUES (?, ?, ?);
            """,
            (project_id, skill_id, quantity),
        )

    def create_allocation(
        self,
        employee_id: int,
        project_id: int,
        allocated_hours: float,
        start_date: str,
        end_date: Optional[str] = None,
        is_active: bool = True,
    ) -> int:
        return self._execute(
            """
            INSERT INTO allocations (
                employee_id, project_id, allocated_hours, start_date, end_date, is_active
            )
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (employee_id, project_id, allocated_hours, start_date, end_date, int(is_active)),
        )

    def create_snapshot(
        self,
        snapshot_date: str,
        overall_utilization: float,
        available_capacity_hours: float,
        committed_capacity_hours: float,
        department_id: Optional[int] = None,
    ) -> int:
        return self._execute(
            """
            INSERT INTO capacity_snapshots (
                snapshot_date,
                overall_utilization,
                available_capacity_hours,
                committed_capacity_hours,
                department_id
            )
            VALUES (?, ?, ?, ?, ?);
            """,
            (
                snapshot_date,
                overall_utilization,
                available_capacity_hours,
                committed_capacity_hours,
                department_id,
            ),
        )

    def create_bottleneck(
        self,
        bottleneck_type: str,
        affected_resource: str,
        severity: str,
        impact_score: float,
        identified_date: str,
        estimated_duration_days: int = 0,
        status: str = "active",
        resolution_date: Optional[str] = None,
        affected_projects: Iterable[int] = (),
        root_causes: Iterable[str] = (),
        resolution_actions: Iterable[str] = (),
    ) -> int:
        return self._execute(
            """
            INSERT INTO capacity_bottlenecks (
                bottleneck_type, affected_resource, severity, impact_score,
                estimated_duration_days, affected_projects, root_causes,
                resolution_actions, status, identified_date, resolution_date
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                bottleneck_type,
                affected_resource,
                severity,
                impact_score,
                estimated_duration_days,
                json.dumps(list(affected_projects)),
                json.dumps(list(root_causes)),
                json.dumps(list(resolution_actions)),
                status,
                identified_date,
                resolution_date,
            ),
        )

    def count_rows(self, table: str) -> int:
        """Return row count for a known table; used by diagnostics and tests."""
        if table not in {
            "departments",
            "employees",
            "skills",
            "projects",
            "allocations",
            "capacity_snapshots",
            "capacity_bottlenecks",
        }:
            raise ValueError(f"Unknown table '{table}'")
        rows = self._query(f"SELECT COUNT(*) AS count FROM {table};")
        return int(rows[0]["count"])
