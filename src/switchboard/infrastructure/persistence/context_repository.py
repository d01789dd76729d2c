"""SQLite implementation of ConversationContextRepository."""

import json
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from switchboard.domain.entities import (
    Capability,
    ConversationContext,
    ConversationTurn,
    EntityMemory,
)
from switchboard.infrastructure.persistence.exceptions import SerializationError
from switchboard.infrastructure.persistence.models import ConversationContextModel


def _as_utc(dt: datetime) -> datetime:
    """SQLite returns naive datetimes; treat them as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class SQLiteConversationContextRepository:
    """SQLite 版 ConversationContextRepository 実装

    履歴とエンティティは JSON 文字列としてカラムに保存する。
    上限や重複排除などの不変条件はドメインエンティティ側で適用済みであり、
    ここでは変換と永続化のみを行う。
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    async def find_by_scope(
        self,
        channel_id: str,
        thread_ts: str | None,
    ) -> ConversationContext | None:
        """スコープでコンテキストを検索

        Args:
            channel_id: チャンネル ID
            thread_ts: スレッド識別子（スレッド外は None）

        Returns:
            コンテキスト（存在しない場合は None）
        """
        async with self._session_factory() as session:
            model = await self._find_model_by_scope(session, channel_id, thread_ts)
            if model is None:
                return None
            return self._to_entity(model)

    async def find_by_id(self, context_id: str) -> ConversationContext | None:
        """ID でコンテキストを検索"""
        async with self._session_factory() as session:
            model = await session.get(ConversationContextModel, context_id)
            if model is None:
                return None
            return self._to_entity(model)

    async def save(self, context: ConversationContext) -> None:
        """コンテキストを保存（upsert）

        同じ ID の行が存在する場合は全カラムを上書きする。

        Args:
            context: 保存するコンテキスト
        """
        async with self._session_factory() as session:
            existing = await session.get(ConversationContextModel, context.id)
            model = self._to_model(context)

            if existing:
                existing.channel_id = model.channel_id
                existing.thread_ts = model.thread_ts
                existing.user_id = model.user_id
                existing.active_capability = model.active_capability
                existing.history = model.history
                existing.entities = model.entities
                existing.created_at = model.created_at
                existing.last_activity_at = model.last_activity_at
                existing.expires_at = model.expires_at
                session.add(existing)
            else:
                session.add(model)

            await session.commit()

    async def delete(self, context_id: str) -> None:
        """ID でコンテキストを削除（存在しない場合は何もしない）"""
        async with self._session_factory() as session:
            model = await session.get(ConversationContextModel, context_id)
            if model:
                await session.delete(model)
                await session.commit()

    async def delete_expired(self, before: datetime) -> int:
        """期限切れのスレッド外コンテキストを削除

        thread_ts を持つコンテキストは期限に関係なく削除しない。

        Args:
            before: この時刻より前の expires_at を持つコンテキストを削除

        Returns:
            削除したレコード数
        """
        async with self._session_factory() as session:
            statement = select(ConversationContextModel).where(
                ConversationContextModel.expires_at < _as_utc(before),  # type: ignore[operator]
                ConversationContextModel.thread_ts.is_(None),  # type: ignore[union-attr]
            )
            result = await session.exec(statement)
            expired_models = result.all()

            deleted_count = len(expired_models)
            for model in expired_models:
                await session.delete(model)

            await session.commit()
            return deleted_count

    async def _find_model_by_scope(
        self,
        session: AsyncSession,
        channel_id: str,
        thread_ts: str | None,
    ) -> ConversationContextModel | None:
        """スコープでモデルを検索（内部用）"""
        if thread_ts is None:
            statement = select(ConversationContextModel).where(
                ConversationContextModel.channel_id == channel_id,
                ConversationContextModel.thread_ts.is_(None),  # type: ignore[union-attr]
            )
        else:
            statement = select(ConversationContextModel).where(
                ConversationContextModel.channel_id == channel_id,
                ConversationContextModel.thread_ts == thread_ts,
            )
        result = await session.exec(statement)
        return result.first()

    def _to_entity(self, model: ConversationContextModel) -> ConversationContext:
        """モデルをエンティティに変換

        Raises:
            SerializationError: 履歴またはエンティティの JSON が壊れている
        """
        try:
            history = tuple(
                ConversationTurn.from_dict(item) for item in json.loads(model.history)
            )
            entities = EntityMemory.from_dict(json.loads(model.entities))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise SerializationError(
                f"Corrupt conversation context {model.id}: {e}"
            ) from e

        return ConversationContext(
            id=model.id,
            channel_id=model.channel_id,
            thread_ts=model.thread_ts,
            user_id=model.user_id,
            active_capability=(
                Capability.parse(model.active_capability)
                if model.active_capability
                else None
            ),
            history=history,
            entities=entities,
            created_at=_as_utc(model.created_at),
            last_activity_at=_as_utc(model.last_activity_at),
            expires_at=_as_utc(model.expires_at),
        )

    def _to_model(self, entity: ConversationContext) -> ConversationContextModel:
        """エンティティをモデルに変換"""
        return ConversationContextModel(
            id=entity.id,
            channel_id=entity.channel_id,
            thread_ts=entity.thread_ts,
            user_id=entity.user_id,
            active_capability=(
                entity.active_capability.value if entity.active_capability else None
            ),
            history=json.dumps(
                [turn.to_dict() for turn in entity.history], ensure_ascii=False
            ),
            entities=json.dumps(entity.entities.to_dict(), ensure_ascii=False),
            created_at=_as_utc(entity.created_at),
            last_activity_at=_as_utc(entity.last_activity_at),
            expires_at=_as_utc(entity.expires_at),
        )
