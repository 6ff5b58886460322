from contextlib import contextmanager
from typing import Any, Iterator, Optional
from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from vidshare.core.errors import StoreError
from vidshare.db.session import engine as default_engine
from vidshare.models.app_tiktok_token import AppTikTokToken

_DEACTIVATE_ACTIVE = (
    update(AppTikTokToken)
    .where(AppTikTokToken.is_active.is_(True))
    .values(is_active=False)
    .execution_options(synchronize_session=False)
)


class AppTokenStore:
    """SQL-backed persistence for app-level TikTok tokens.

    Every operation runs in its own short-lived session so a read never sees
    a snapshot older than the last committed refresh.
    """

    def __init__(self, engine: Optional[Engine] = None) -> None:
        self._engine = engine if engine is not None else default_engine

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        with Session(self._engine, expire_on_commit=False) as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreError(f'Failed to {action}') from exc

    def find_active(self) -> Optional[AppTikTokToken]:
        statement = (
            select(AppTikTokToken)
            .where(AppTikTokToken.is_active.is_(True))
            .order_by(AppTikTokToken.created_at.desc(), AppTikTokToken.token_created_at.desc())
            .limit(1)
        )
        with self._session('load active TikTok token') as session:
            return session.exec(statement).first()

    def deactivate_all_active(self) -> int:
        with self._session('deactivate TikTok tokens') as session:
            result = session.exec(_DEACTIVATE_ACTIVE)  # type: ignore[call-overload]
            session.commit()
            return result.rowcount or 0

    def insert(self, fields: dict[str, Any]) -> AppTikTokToken:
        record = AppTikTokToken(**{**fields, 'is_active': True})
        with self._session('store TikTok token') as session:
            session.add(record)
            session.commit()
            session.refresh(record)
        return record

    def update_by_id(self, token_id: str, fields: dict[str, Any]) -> AppTikTokToken:
        with self._session('update TikTok token') as session:
            record = session.get(AppTikTokToken, token_id)
            if record is None:
                raise StoreError(f'TikTok token {token_id} not found')
            for key, value in fields.items():
                setattr(record, key, value)
            session.add(record)
            session.commit()
            session.refresh(record)
        return record

    def replace_active(self, fields: dict[str, Any]) -> tuple[AppTikTokToken, int]:
        """Deactivate every active row and insert ``fields`` as the new one in a single commit.

        Returns the new row and the number of rows deactivated. On failure
        nothing is written and the previous credential stays active.
        """
        record = AppTikTokToken(**{**fields, 'is_active': True})
        with self._session('replace TikTok token') as session:
            result = session.exec(_DEACTIVATE_ACTIVE)  # type: ignore[call-overload]
            deactivated = result.rowcount or 0
            session.add(record)
            session.commit()
            session.refresh(record)
        return record, deactivated
