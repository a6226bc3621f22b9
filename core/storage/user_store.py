"""
UserStore - 사용자 디렉토리

identity provider가 관리하는 사용자의 로컬 읽기 모델.
감사 로그/거래 조회 시 표시 이름 조인에만 사용.
"""

import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import AppUser
from core.types import Role
from core.utils.timezone import now_utc, parse_iso, to_iso

logger = logging.getLogger(__name__)


USER_COLUMNS = "id, full_name, email, role, is_active, updated_at"


class UserStore:
    """사용자 디렉토리 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def upsert(
        self,
        user_id: str,
        full_name: str,
        email: str | None,
        role: Role,
        is_active: bool = True,
    ) -> tuple[AppUser | None, AppUser]:
        """사용자 등록/갱신

        Returns:
            (이전 값 또는 None, 새 값)
        """
        ts = to_iso(now_utc())

        async with self.db.transaction() as conn:
            cursor = await conn.execute(
                f"SELECT {USER_COLUMNS} FROM app_user WHERE id = ?",
                (user_id,),
            )
            row = await cursor.fetchone()
            await cursor.close()
            before = self._row_to_user(row) if row else None

            await conn.execute(
                """
                INSERT INTO app_user (id, full_name, email, role, is_active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    full_name = excluded.full_name,
                    email = excluded.email,
                    role = excluded.role,
                    is_active = excluded.is_active,
                    updated_at = excluded.updated_at
                """,
                (user_id, full_name, email, role.value, 1 if is_active else 0, ts, ts),
            )

        after = AppUser(
            id=user_id,
            full_name=full_name,
            email=email,
            role=role,
            is_active=is_active,
            updated_at=parse_iso(ts),
        )

        logger.info(
            "사용자 디렉토리 갱신" if before else "사용자 등록",
            extra={"user_id": user_id, "role": role.value},
        )
        return before, after

    async def get(self, user_id: str) -> AppUser | None:
        row = await self.db.fetchone(
            f"SELECT {USER_COLUMNS} FROM app_user WHERE id = ?",
            (user_id,),
        )
        return self._row_to_user(row) if row else None

    async def list_users(self) -> list[AppUser]:
        rows = await self.db.fetchall(
            f"SELECT {USER_COLUMNS} FROM app_user ORDER BY full_name COLLATE NOCASE"
        )
        return [self._row_to_user(row) for row in rows]

    def _row_to_user(self, row: tuple[Any, ...]) -> AppUser:
        return AppUser(
            id=row[0],
            full_name=row[1],
            email=row[2],
            role=Role(row[3]),
            is_active=bool(row[4]),
            updated_at=parse_iso(row[5]),
        )
