"""Seed idempotent demo users and catalog for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.core.config import get_settings
from tutordesk.core.database import SessionLocal, close_engine
from tutordesk.core.enums import RoleEnum
from tutordesk.core.security import create_access_token
from tutordesk.modules.catalog.models import Subject, Topic
from tutordesk.modules.catalog.repository import CatalogRepository
from tutordesk.modules.identity.models import User
from tutordesk.modules.identity.repository import IdentityRepository

DEMO_USERS = (
    ("demo_admin", "demo-admin@tutordesk.dev", RoleEnum.ADMIN),
    ("demo_tutor", "demo-tutor@tutordesk.dev", RoleEnum.TUTOR),
    ("demo_student", "demo-student@tutordesk.dev", RoleEnum.STUDENT),
)

DEMO_CATALOG = {
    "Mathematics": ("Algebra", "Geometry", "Calculus"),
    "Physics": ("Mechanics", "Electromagnetism"),
    "Programming": ("Python", "Databases"),
}


@dataclass(slots=True)
class SeedStats:
    users_created: int = 0
    users_updated: int = 0
    subjects_created: int = 0
    topics_created: int = 0
    tokens: dict[str, str] = field(default_factory=dict)


async def _ensure_user(
    session: AsyncSession,
    *,
    username: str,
    email: str,
    role: RoleEnum,
) -> tuple[User, bool]:
    repository = IdentityRepository(session)
    user = await repository.get_user_by_username(username)
    if user is None:
        return await repository.create_user(username=username, email=email, role=role), True

    user.email = email
    user.role = role
    user.is_active = True
    await session.flush()
    return user, False


async def _ensure_catalog(session: AsyncSession, stats: SeedStats) -> None:
    repository = CatalogRepository(session)
    for subject_name, topic_names in DEMO_CATALOG.items():
        subject = await session.scalar(select(Subject).where(Subject.name == subject_name))
        if subject is None:
            subject = await repository.create_subject(subject_name)
            stats.subjects_created += 1

        for topic_name in topic_names:
            existing = await session.scalar(
                select(Topic).where(Topic.subject_id == subject.id, Topic.name == topic_name),
            )
            if existing is None:
                await repository.create_topic(subject.id, topic_name)
                stats.topics_created += 1


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with SessionLocal() as session:
        try:
            for username, email, role in DEMO_USERS:
                user, created = await _ensure_user(session, username=username, email=email, role=role)
                if created:
                    stats.users_created += 1
                else:
                    stats.users_updated += 1
                stats.tokens[username] = create_access_token(str(user.id), role=role.value)

            await _ensure_catalog(session, stats)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Seed idempotent demo data for TutorDesk (admin, tutor, student, subjects and topics).",
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Users created: {stats.users_created}")
    print(f"- Users updated: {stats.users_updated}")
    print(f"- Subjects created: {stats.subjects_created}")
    print(f"- Topics created: {stats.topics_created}")
    print("")
    print("Demo bearer tokens (non-production only):")
    for username, token in stats.tokens.items():
        print(f"- {username}: {token}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
