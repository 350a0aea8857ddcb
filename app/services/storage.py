"""
Dual-backend storage synchronizer.

The remote backend is the source of truth when it is configured and
reachable; the local cache is always written as a warm backup and is the only
source when the remote is absent or unreachable.

Policy per entity:
- get_all:   remote ∪ local, remote wins on id collision; local only if the
             remote is unconfigured or the fetch fails.
- get_by_id: remote answer when configured (including a clean "not found");
             local lookup only when the remote is unavailable.
- save:      remote first, then local regardless of the remote outcome; a
             remote failure is re-raised after the local write.
- delete:    same ordering and error policy as save.

There are no cross-entity transactions. Cascades are sequences of
independent writes and a partial failure is reconciled on the next read.
"""
import logging
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import ValidationError

from app.core.config import RemoteConfig
from app.core.events import EventBus, Topic, event_bus
from app.core.exceptions import (
    AppException,
    InvalidTransitionError,
    NotFoundError,
    RemoteUnavailableError,
)
from app.core.session import SessionContext
from app.database import LocalCache, get_local_cache
from app.schemas.appraisal import (
    STATUS_ORDER,
    Appraisal,
    AppraisalAssignment,
    AppraisalLink,
    AssignmentStatus,
)
from app.schemas.backup import SNAPSHOT_VERSION, Snapshot
from app.schemas.base import utc_now
from app.schemas.employee import Employee, is_locked
from app.schemas.review_period import PeriodStatus, ReviewPeriod
from app.schemas.settings import DEFAULT_SETTINGS, SETTINGS_KEY, CompanySettings
from app.schemas.summary import PerformanceSummary
from app.schemas.team import Team
from app.schemas.template import Template
from app.schemas.user import User
from app.services import mappers
from app.services.mappers import EntityMapper, Row
from app.services.remote_backend import RemoteBackend, RestRemoteBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityStore(Generic[T]):
    """Merge/fallback policy for one entity type."""

    def __init__(self, mapper: EntityMapper[T], local: LocalCache, remote: Optional[RemoteBackend]):
        self.mapper = mapper
        self.local = local
        self.remote = remote

    @property
    def name(self) -> str:
        return self.mapper.name

    def _parse(self, rows: List[Row], source: str) -> List[T]:
        items = []
        for row in rows:
            try:
                items.append(self.mapper.from_row(row))
            except (ValidationError, KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed {self.name} row from {source}: {e}")
        return items

    def _local_items(self) -> List[T]:
        return self._parse(self.local.all(self.mapper.model), "local cache")

    def get_all(self) -> List[T]:
        local_items = self._local_items()
        if self.remote is None:
            return local_items

        try:
            remote_rows = self.remote.select(self.mapper.table)
        except RemoteUnavailableError as e:
            logger.warning(f"Remote {self.name} fetch failed, using local cache: {e.message}")
            return local_items

        remote_items = self._parse(remote_rows, "remote")
        try:
            # Keep the cache warm with the authoritative copies
            self.local.put_many(self.mapper.model, self.mapper.rows(remote_items))
        except Exception as e:
            logger.warning(f"Could not refresh local {self.name} cache: {e}")

        merged: Dict[str, T] = {self.mapper.key_of(item): item for item in remote_items}
        local_only = 0
        for item in local_items:
            key = self.mapper.key_of(item)
            if key not in merged:
                merged[key] = item
                local_only += 1
        if local_only:
            logger.debug(f"{local_only} local-only {self.name} record(s) kept in merged view")
        return list(merged.values())

    def parse_row(self, row: Optional[Row], source: str) -> Optional[T]:
        items = self._parse([row], source) if row is not None else []
        return items[0] if items else None

    def get_by_id(self, key: str) -> Optional[T]:
        if self.remote is not None:
            try:
                row = self.remote.select_one(self.mapper.table, self.mapper.key_column, key)
            except RemoteUnavailableError as e:
                logger.warning(f"Remote {self.name} lookup failed, using local cache: {e.message}")
            else:
                return self.parse_row(row, "remote")
        return self.parse_row(self.local.get(self.mapper.model, key), "local cache")

    def get_by_unique_field(self, column: str, value: str, case_insensitive: bool = False) -> Optional[T]:
        """
        Single-record lookup on a unique column.

        With a reachable remote the remote answer is final; the local cache
        is not enumerated, so stale local rows cannot cause false duplicates.
        """
        if self.remote is not None:
            try:
                if case_insensitive:
                    rows = self.remote.select_ilike(self.mapper.table, column, value.strip())
                else:
                    rows = self.remote.select(self.mapper.table, {column: value})
                items = self._parse(rows, "remote")
                return items[0] if items else None
            except RemoteUnavailableError as e:
                logger.warning(f"Remote {self.name} lookup by {column} failed, using local cache: {e.message}")
        rows = self.local.find_by(self.mapper.model, column, value, case_insensitive=case_insensitive)
        items = self._parse(rows, "local cache")
        return items[0] if items else None

    def exists_locally(self, key: str) -> bool:
        return self.local.get(self.mapper.model, key) is not None

    def save(self, item: T) -> T:
        self.save_many([item])
        return item

    def save_many(self, items: List[T]) -> int:
        if not items:
            return 0
        rows = self.mapper.rows(items)
        remote_error: Optional[AppException] = None
        if self.remote is not None:
            try:
                self.remote.upsert(self.mapper.table, rows, on_conflict=self.mapper.key_column)
            except AppException as e:
                remote_error = e
        self.local.put_many(self.mapper.model, rows)
        if remote_error is not None:
            logger.error(f"Remote save of {len(rows)} {self.name}(s) failed: {remote_error.message}")
            raise remote_error
        logger.info(f"Saved {len(rows)} {self.name}(s)")
        return len(rows)

    def delete(self, key: str) -> None:
        remote_error: Optional[AppException] = None
        if self.remote is not None:
            try:
                self.remote.delete(self.mapper.table, self.mapper.key_column, key)
            except AppException as e:
                remote_error = e
        self.local.delete(self.mapper.model, key)
        if remote_error is not None:
            logger.error(f"Remote delete of {self.name} {key} failed: {remote_error.message}")
            raise remote_error

    def delete_where(self, column: str, value: str) -> int:
        """Delete every record whose column equals value. Returns the local count."""
        remote_error: Optional[AppException] = None
        if self.remote is not None:
            try:
                self.remote.delete(self.mapper.table, column, value)
            except AppException as e:
                remote_error = e
        count = self.local.delete_where(self.mapper.model, column, value)
        if remote_error is not None:
            raise remote_error
        return count

    def refresh_from_remote(self) -> int:
        """Replace the local table with the remote contents."""
        if self.remote is None:
            return 0
        items = self._parse(self.remote.select(self.mapper.table), "remote")
        return self.local.replace_all(self.mapper.model, self.mapper.rows(items))


class StorageSynchronizer:
    """CRUD for every entity type over the local cache and the optional remote."""

    def __init__(
        self,
        local: LocalCache,
        remote: Optional[RemoteBackend] = None,
        bus: EventBus = event_bus,
    ):
        self.local = local
        self.remote = remote
        self.bus = bus
        self.local.init()

        self.employees = EntityStore(mappers.EMPLOYEES, local, remote)
        self.teams = EntityStore(mappers.TEAMS, local, remote)
        self.templates = EntityStore(mappers.TEMPLATES, local, remote)
        self.review_periods = EntityStore(mappers.REVIEW_PERIODS, local, remote)
        self.appraisals = EntityStore(mappers.APPRAISALS, local, remote)
        self.links = EntityStore(mappers.LINKS, local, remote)
        self.assignments = EntityStore(mappers.ASSIGNMENTS, local, remote)
        self.users = EntityStore(mappers.USERS, local, remote)
        self.settings = EntityStore(mappers.SETTINGS, local, remote)
        self.summaries = EntityStore(mappers.SUMMARIES, local, remote)

    @classmethod
    def from_config(cls, remote_config: Optional[RemoteConfig], local: Optional[LocalCache] = None) -> "StorageSynchronizer":
        remote = RestRemoteBackend(remote_config) if remote_config is not None else None
        if remote_config is not None:
            logger.info(f"Remote backend configured ({remote_config.project_hint})")
        return cls(local or get_local_cache(), remote)

    @property
    def remote_configured(self) -> bool:
        return self.remote is not None

    def _stores(self) -> List[EntityStore]:
        return [
            self.templates, self.employees, self.appraisals, self.links,
            self.review_periods, self.users, self.teams, self.assignments,
            self.summaries, self.settings,
        ]

    # ========================================================================
    # EMPLOYEES
    # ========================================================================
    def get_employees(self) -> List[Employee]:
        return self.employees.get_all()

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        return self.employees.get_by_id(employee_id)

    def save_employee(self, employee: Employee) -> Employee:
        created = not self.employees.exists_locally(employee.id)
        self.employees.save(employee)
        payload = {"employee_id": employee.id, "locked": is_locked(employee)}
        self.bus.publish(Topic.EMPLOYEE_CREATED if created else Topic.EMPLOYEE_UPDATED, payload)
        return employee

    def update_employee_team(self, employee_id: str, team_id: Optional[str]) -> Employee:
        """Change only team membership (assign/remove a department leader)."""
        employee = self.get_employee(employee_id)
        if employee is None:
            raise NotFoundError("employee", employee_id)
        updated = employee.model_copy(update={"team_id": team_id})
        remote_error: Optional[AppException] = None
        if self.remote is not None:
            try:
                self.remote.update(mappers.EMPLOYEES.table, "id", employee_id, {"team_id": team_id})
            except AppException as e:
                remote_error = e
        self.local.put(mappers.EMPLOYEES.model, mappers.EMPLOYEES.to_row(updated))
        if remote_error is not None:
            raise remote_error
        self.bus.publish(Topic.EMPLOYEE_UPDATED, {"employee_id": employee_id, "team_id": team_id})
        return updated

    def cascade_delete_for_employee(self, employee_id: str) -> Dict[str, int]:
        """Remove appraisal data where the employee is subject or appraiser."""
        counts = {"appraisals": 0, "assignments": 0, "links": 0, "summaries": 0}
        for key, store in (("appraisals", self.appraisals), ("assignments", self.assignments), ("links", self.links)):
            for column in ("employee_id", "appraiser_id"):
                counts[key] += store.delete_where(column, employee_id)
        if self.summaries.get_by_id(employee_id) is not None or self.summaries.exists_locally(employee_id):
            self.summaries.delete(employee_id)
            counts["summaries"] = 1
        return counts

    def delete_employee(self, employee_id: str) -> None:
        counts = self.cascade_delete_for_employee(employee_id)
        linked = self.get_user_by_employee_id(employee_id)
        if linked is not None:
            self.save_user(linked.model_copy(update={"employee_id": None}))
        self.employees.delete(employee_id)
        logger.info(f"Deleted employee {employee_id} with cascade {counts}")
        self.bus.publish(Topic.EMPLOYEE_DELETED, {"employee_id": employee_id})

    # ========================================================================
    # TEAMS
    # ========================================================================
    def get_teams(self) -> List[Team]:
        return self.teams.get_all()

    def get_team(self, team_id: str) -> Optional[Team]:
        return self.teams.get_by_id(team_id)

    def save_team(self, team: Team) -> Team:
        self.teams.save(team)
        self.bus.publish(Topic.TEAM_UPDATED, {"team_id": team.id})
        return team

    def delete_team(self, team_id: str) -> None:
        # Employees keep their team_id; a dangling team reference reads as "no team"
        self.teams.delete(team_id)
        self.bus.publish(Topic.TEAM_UPDATED, {"team_id": team_id, "deleted": True})

    # ========================================================================
    # TEMPLATES
    # ========================================================================
    def get_templates(self) -> List[Template]:
        return self.templates.get_all()

    def get_template(self, template_id: str) -> Optional[Template]:
        return self.templates.get_by_id(template_id)

    def save_template(self, template: Template) -> Template:
        return self.templates.save(template)

    def delete_template(self, template_id: str) -> None:
        self.templates.delete(template_id)

    # ========================================================================
    # REVIEW PERIODS
    # ========================================================================
    def get_review_periods(self) -> List[ReviewPeriod]:
        return self.review_periods.get_all()

    def get_review_period(self, period_id: str) -> Optional[ReviewPeriod]:
        return self.review_periods.get_by_id(period_id)

    def get_active_review_periods(self) -> List[ReviewPeriod]:
        return [p for p in self.get_review_periods() if p.status == PeriodStatus.ACTIVE]

    def save_review_period(self, period: ReviewPeriod) -> ReviewPeriod:
        self.review_periods.save(period)
        self.bus.publish(Topic.PERIOD_UPDATED, {"review_period_id": period.id})
        return period

    def delete_review_period(self, period_id: str) -> None:
        self.assignments.delete_where("review_period_id", period_id)
        self.links.delete_where("review_period_id", period_id)
        self.review_periods.delete(period_id)
        self.bus.publish(Topic.PERIOD_UPDATED, {"review_period_id": period_id, "deleted": True})

    # ========================================================================
    # APPRAISALS
    # ========================================================================
    def get_appraisals(self) -> List[Appraisal]:
        return self.appraisals.get_all()

    def get_appraisal(self, appraisal_id: str) -> Optional[Appraisal]:
        return self.appraisals.get_by_id(appraisal_id)

    def save_appraisal(self, appraisal: Appraisal) -> Appraisal:
        return self.appraisals.save(appraisal)

    def delete_appraisal(self, appraisal_id: str) -> None:
        self.appraisals.delete(appraisal_id)

    def submit_appraisal(self, appraisal: Appraisal, session: Optional[SessionContext] = None) -> Appraisal:
        """Store a completed form. A completed appraisal cannot be submitted again."""
        if session is not None:
            session.require_active()
        existing = self.get_appraisal(appraisal.id)
        if existing is not None and existing.is_completed:
            raise InvalidTransitionError("This appraisal has already been submitted", {"appraisal_id": appraisal.id})
        if appraisal.completed_at is None:
            appraisal = appraisal.model_copy(update={"completed_at": utc_now()})
        self.appraisals.save(appraisal)
        self.bus.publish(
            Topic.APPRAISAL_SUBMITTED,
            {"appraisal_id": appraisal.id, "employee_id": appraisal.employee_id, "appraiser_id": appraisal.appraiser_id},
        )
        return appraisal

    # ========================================================================
    # LINKS
    # ========================================================================
    def get_links(self) -> List[AppraisalLink]:
        return self.links.get_all()

    def get_link(self, link_id: str) -> Optional[AppraisalLink]:
        return self.links.get_by_id(link_id)

    def get_link_by_token(self, token: str) -> Optional[AppraisalLink]:
        return self.links.get_by_unique_field("token", token)

    def save_link(self, link: AppraisalLink) -> AppraisalLink:
        return self.links.save(link)

    def delete_link(self, link_id: str) -> None:
        self.links.delete(link_id)

    def mark_link_used(self, token: str) -> AppraisalLink:
        """Consume a single-use link. A link can be used exactly once."""
        link = self.get_link_by_token(token)
        if link is None:
            raise NotFoundError("link", token)
        if link.used:
            raise InvalidTransitionError("This appraisal link has already been used", {"token": token})
        if link.is_expired():
            raise InvalidTransitionError("This appraisal link has expired", {"token": token})
        used = link.model_copy(update={"used": True})
        return self.links.save(used)

    # ========================================================================
    # ASSIGNMENTS
    # ========================================================================
    def get_assignments(self) -> List[AppraisalAssignment]:
        return self.assignments.get_all()

    def get_assignment(self, assignment_id: str) -> Optional[AppraisalAssignment]:
        return self.assignments.get_by_id(assignment_id)

    def get_assignments_for_period(self, period_id: str) -> List[AppraisalAssignment]:
        return [a for a in self.get_assignments() if a.review_period_id == period_id]

    def get_assignments_by_appraiser(self, appraiser_id: str) -> List[AppraisalAssignment]:
        return [a for a in self.get_assignments() if a.appraiser_id == appraiser_id]

    def save_assignment(self, assignment: AppraisalAssignment) -> AppraisalAssignment:
        return self.assignments.save(assignment)

    def save_assignments(self, assignments: List[AppraisalAssignment]) -> int:
        count = self.assignments.save_many(assignments)
        if count:
            periods = sorted({a.review_period_id for a in assignments})
            self.bus.publish(Topic.ASSIGNMENTS_CREATED, {"count": count, "review_period_ids": periods})
        return count

    def delete_assignment(self, assignment_id: str) -> None:
        self.assignments.delete(assignment_id)

    def delete_assignments_for_period(self, period_id: str) -> int:
        count = len(self.get_assignments_for_period(period_id))
        self.assignments.delete_where("review_period_id", period_id)
        return count

    def update_assignment_status(self, assignment_id: str, status: AssignmentStatus) -> AppraisalAssignment:
        """Advance an assignment. Status never moves backwards."""
        assignment = self.get_assignment(assignment_id)
        if assignment is None:
            raise NotFoundError("assignment", assignment_id)
        current = assignment.status
        if STATUS_ORDER[status] < STATUS_ORDER[current]:
            raise InvalidTransitionError(
                f"Assignment status cannot move from {current.value} to {status.value}",
                {"assignment_id": assignment_id},
            )
        if status == current:
            return assignment
        return self.assignments.save(assignment.model_copy(update={"status": status}))

    # ========================================================================
    # USERS
    # ========================================================================
    def get_users(self) -> List[User]:
        return self.users.get_all()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get_by_id(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.users.get_by_unique_field("username", username.strip().lower(), case_insensitive=True)

    def get_user_by_employee_id(self, employee_id: str) -> Optional[User]:
        return self.users.get_by_unique_field("employee_id", employee_id)

    def save_user(self, user: User) -> User:
        created = not self.users.exists_locally(user.id)
        self.users.save(user)
        self.bus.publish(
            Topic.USER_CREATED if created else Topic.USER_UPDATED,
            {"user_id": user.id, "employee_id": user.employee_id},
        )
        return user

    def delete_user(self, user_id: str) -> None:
        self.users.delete(user_id)
        self.bus.publish(Topic.USER_UPDATED, {"user_id": user_id, "deleted": True})

    # ========================================================================
    # SETTINGS
    # ========================================================================
    def get_settings(self) -> CompanySettings:
        stored = self.settings.get_by_id(SETTINGS_KEY)
        if stored is not None:
            if self.remote is not None:
                self.local.put(mappers.SETTINGS.model, mappers.SETTINGS.to_row(stored))
            return stored
        local = self.settings.parse_row(self.local.get(mappers.SETTINGS.model, SETTINGS_KEY), "local cache")
        return local if local is not None else DEFAULT_SETTINGS.model_copy()

    def save_settings(self, settings: CompanySettings) -> CompanySettings:
        return self.settings.save(settings)

    # ========================================================================
    # PERFORMANCE SUMMARIES
    # ========================================================================
    def get_summaries(self) -> List[PerformanceSummary]:
        return self.summaries.get_all()

    def get_summary(self, employee_id: str) -> Optional[PerformanceSummary]:
        return self.summaries.get_by_id(employee_id)

    def save_summary(self, summary: PerformanceSummary) -> PerformanceSummary:
        return self.summaries.save(summary)

    # ========================================================================
    # BULK
    # ========================================================================
    def clear_appraisal_data(self) -> Dict[str, int]:
        """
        Remove assignments, appraisals, links and summaries.
        Users, employees, teams, templates, periods and settings are kept.
        """
        counts = {}
        for key, store in (
            ("assignments", self.assignments),
            ("appraisals", self.appraisals),
            ("links", self.links),
            ("summaries", self.summaries),
        ):
            items = store.get_all()
            for item in items:
                store.delete(store.mapper.key_of(item))
            counts[key] = len(items)
        logger.info(f"Cleared appraisal data: {counts}")
        return counts

    def export_all(self) -> Snapshot:
        return Snapshot(
            version=SNAPSHOT_VERSION,
            templates=self.get_templates(),
            employees=self.get_employees(),
            appraisals=self.get_appraisals(),
            links=self.get_links(),
            review_periods=self.get_review_periods(),
            users=self.get_users(),
            teams=self.get_teams(),
            appraisal_assignments=self.get_assignments(),
            summaries=self.get_summaries(),
            settings=self.get_settings(),
        )

    def import_all(self, snapshot: Snapshot) -> Dict[str, int]:
        """Write every entity in the snapshot through the normal save path."""
        counts = {
            "templates": self.templates.save_many(snapshot.templates),
            "employees": self.employees.save_many(snapshot.employees),
            "appraisals": self.appraisals.save_many(snapshot.appraisals),
            "links": self.links.save_many(snapshot.links),
            "review_periods": self.review_periods.save_many(snapshot.review_periods),
            "users": self.users.save_many(snapshot.users),
            "teams": self.teams.save_many(snapshot.teams),
            "appraisal_assignments": self.assignments.save_many(snapshot.appraisal_assignments),
            "summaries": self.summaries.save_many(snapshot.summaries),
        }
        if snapshot.settings is not None:
            self.save_settings(snapshot.settings)
            counts["settings"] = 1
        logger.info(f"Imported snapshot v{snapshot.version}: {counts}")
        return counts

    def sync_from_remote(self) -> bool:
        """
        Overwrite every local table with the remote contents.
        Returns False when the remote is not configured or not reachable.
        """
        if self.remote is None:
            return False
        try:
            counts = {}
            for store in self._stores():
                if store is self.settings:
                    remote_settings = self.remote.select_one(store.mapper.table, store.mapper.key_column, SETTINGS_KEY)
                    parsed = store.parse_row(remote_settings, "remote")
                    if parsed is not None:
                        self.local.put(store.mapper.model, store.mapper.to_row(parsed))
                    continue
                counts[store.name] = store.refresh_from_remote()
        except RemoteUnavailableError as e:
            logger.error(f"Sync from remote failed: {e.message}")
            return False
        logger.info(f"Synced local cache from remote: {counts}")
        return True
