from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import TypeAdapter
from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlmodel import Session, select

from contest_node.db.tables import BadgeAwardRow, BadgeRow, ContestRow, DriverRow, UserBadgeRow
from contest_node.entities.badge import Badge, BadgeAward
from contest_node.entities.contest import Contest, ContestSettings, DiscoveredBadge, Round
from contest_node.entities.driver import DriverAttributes, DriverProfile, DriverStats
from contest_node.errors import StaleContestError
from contest_node.interfaces.badge_repository import BadgeRepository
from contest_node.interfaces.contest_repository import ContestRepository
from contest_node.interfaces.driver_repository import DriverRepository
from contest_node.interfaces.user_repository import UserRepository
from contest_node.scoring.points import parse_scoring, points_structure_for, scoring_from_points_structure

_rounds = TypeAdapter(list[Round])
_settings = TypeAdapter(ContestSettings)
_discovered = TypeAdapter(list[DiscoveredBadge])
_attributes = TypeAdapter(DriverAttributes)
_stats = TypeAdapter(DriverStats)


class DBContestRepository(ContestRepository):
    def __init__(self, session: Session):
        self._session = session

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def fetch(self, contest_id: str) -> Contest | None:
        row = self._session.exec(
            select(ContestRow)
            .where(ContestRow.id == contest_id)
            .execution_options(populate_existing=True)
        ).first()
        return self._row_to_domain(row) if row else None

    def list_ids(self) -> list[str]:
        return list(self._session.exec(select(ContestRow.id).order_by(ContestRow.id)).all())

    def save(self, contest: Contest) -> None:
        values = self._domain_to_values(contest)
        values["updated_at"] = datetime.now(timezone.utc)

        if self._session.get(ContestRow, contest.id) is None:
            self._session.add(ContestRow(id=contest.id, version=contest.version + 1, **values))
            self._session.flush()
        else:
            result = self._session.execute(
                update(ContestRow)
                .where(ContestRow.id == contest.id, ContestRow.version == contest.version)
                .values(version=contest.version + 1, **values)
            )
            if result.rowcount != 1:
                self._session.rollback()
                raise StaleContestError(contest.id, contest.version)

        contest.version += 1

    @staticmethod
    def _row_to_domain(row: ContestRow) -> Contest:
        if row.scoring_jsonb:
            scoring = parse_scoring(row.scoring_jsonb)
        else:
            scoring = scoring_from_points_structure(row.points_structure_jsonb or [])
        return Contest(
            id=row.id,
            name=row.name,
            scoring=scoring,
            rounds=_rounds.validate_python(row.rounds_jsonb or []),
            competitors=list(row.competitors_jsonb or []),
            champ_badges=list(row.champ_badges_jsonb or []),
            settings=_settings.validate_python(row.settings_jsonb or {}),
            discovered_badges=_discovered.validate_python(row.discovered_badges_jsonb or []),
            season=row.season,
            version=row.version,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _domain_to_values(contest: Contest) -> dict[str, Any]:
        return {
            "name": contest.name,
            "season": contest.season,
            "scoring_jsonb": contest.scoring.model_dump(mode="json"),
            "points_structure_jsonb": points_structure_for(contest.scoring),
            "rounds_jsonb": _rounds.dump_python(contest.rounds, mode="json"),
            "competitors_jsonb": list(contest.competitors),
            "champ_badges_jsonb": list(contest.champ_badges),
            "settings_jsonb": _settings.dump_python(contest.settings, mode="json"),
            "discovered_badges_jsonb": _discovered.dump_python(contest.discovered_badges, mode="json"),
            "created_at": contest.created_at,
        }


class DBDriverRepository(DriverRepository):
    def __init__(self, session: Session):
        self._session = session

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def fetch_by_ids(self, ids: list[str]) -> dict[str, DriverProfile]:
        if not ids:
            return {}
        rows = self._session.exec(select(DriverRow).where(DriverRow.id.in_(ids))).all()
        return {row.id: self._row_to_domain(row) for row in rows}

    def save(self, profile: DriverProfile) -> None:
        existing = self._session.get(DriverRow, profile.id)
        if existing is None:
            self._session.add(DriverRow(
                id=profile.id,
                name=profile.name,
                attributes_jsonb=_attributes.dump_python(profile.attributes, mode="json"),
                stats_jsonb=_stats.dump_python(profile.stats, mode="json"),
            ))
        else:
            existing.name = profile.name
            existing.attributes_jsonb = _attributes.dump_python(profile.attributes, mode="json")
            existing.stats_jsonb = _stats.dump_python(profile.stats, mode="json")
            existing.updated_at = datetime.now(timezone.utc)

    def bulk_update_stats(self, stats: dict[str, DriverStats]) -> None:
        if not stats:
            return
        now = datetime.now(timezone.utc)
        self._session.execute(
            update(DriverRow),
            [
                {"id": driver_id, "stats_jsonb": _stats.dump_python(s, mode="json"), "updated_at": now}
                for driver_id, s in stats.items()
            ],
        )

    @staticmethod
    def _row_to_domain(row: DriverRow) -> DriverProfile:
        return DriverProfile(
            id=row.id,
            name=row.name,
            attributes=_attributes.validate_python(row.attributes_jsonb or {}),
            stats=_stats.validate_python(row.stats_jsonb or {}),
        )


class DBBadgeRepository(BadgeRepository):
    def __init__(self, session: Session):
        self._session = session

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def fetch_by_ids(self, ids: list[str]) -> list[Badge]:
        if not ids:
            return []
        rows = self._session.exec(select(BadgeRow).where(BadgeRow.id.in_(ids))).all()
        members = self._session.exec(
            select(BadgeAwardRow).where(BadgeAwardRow.badge_id.in_(ids))
        ).all()
        awarded: dict[str, set[str]] = {}
        for member in members:
            awarded.setdefault(member.badge_id, set()).add(member.user_id)
        by_id = {row.id: row for row in rows}
        # contest order, not table order
        return [
            Badge(
                id=by_id[badge_id].id,
                awarded_how=by_id[badge_id].awarded_how,
                name=by_id[badge_id].name,
                rarity=by_id[badge_id].rarity,
                awarded_to=awarded.get(badge_id, set()),
            )
            for badge_id in dict.fromkeys(ids) if badge_id in by_id
        ]

    def save(self, badge: Badge) -> None:
        existing = self._session.get(BadgeRow, badge.id)
        if existing is None:
            self._session.add(BadgeRow(
                id=badge.id, awarded_how=badge.awarded_how, name=badge.name, rarity=badge.rarity,
            ))
        else:
            existing.awarded_how = badge.awarded_how
            existing.name = badge.name
            existing.rarity = badge.rarity

    def add_awarded_to(self, awarded: dict[str, list[str]]) -> None:
        values = [
            {"badge_id": badge_id, "user_id": user_id}
            for badge_id, user_ids in awarded.items()
            for user_id in dict.fromkeys(user_ids)
        ]
        if not values:
            return
        self._session.execute(
            pg_insert(BadgeAwardRow.__table__)
            .values(values)
            .on_conflict_do_nothing(index_elements=["badge_id", "user_id"])
        )


class DBUserRepository(UserRepository):
    def __init__(self, session: Session):
        self._session = session

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def append_badges(self, awards: list[BadgeAward]) -> None:
        if not awards:
            return
        self._session.execute(
            pg_insert(UserBadgeRow.__table__)
            .values([
                {
                    "user_id": a.user_id,
                    "badge_id": a.badge_id,
                    "contest_id": a.contest_id,
                    "round_index": a.round_index,
                    "awarded_at": a.awarded_at,
                }
                for a in awards
            ])
            .on_conflict_do_nothing(index_elements=["user_id", "badge_id", "contest_id"])
        )

    def fetch_badges(self, user_id: str) -> list[BadgeAward]:
        rows = self._session.exec(
            select(UserBadgeRow).where(UserBadgeRow.user_id == user_id).order_by(UserBadgeRow.awarded_at)
        ).all()
        return [
            BadgeAward(
                badge_id=row.badge_id,
                user_id=row.user_id,
                contest_id=row.contest_id,
                round_index=row.round_index,
                awarded_at=row.awarded_at,
            )
            for row in rows
        ]
