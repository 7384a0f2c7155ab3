from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from schedule_app.models.kv_entry import KeyValueEntry, utc_naive_now


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


def appointments_key(uid: str) -> str:
    return f"appointments:{uid}"


def unavailable_key(uid: str) -> str:
    return f"unavailable:{uid}"


class SqlKeyValueStore:
    """Key-value store backed by the ``kv_entries`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, key: str) -> str | None:
        result = await self.session.execute(select(KeyValueEntry.value).where(KeyValueEntry.key == key))
        return result.scalar_one_or_none()

    async def set(self, key: str, value: str) -> None:
        entry = await self.session.get(KeyValueEntry, key)
        if entry is None:
            entry = KeyValueEntry(key=key, value=value)
        else:
            entry.value = value
            entry.updated_at = utc_naive_now()
        self.session.add(entry)
        await self.session.flush()

    async def remove(self, key: str) -> None:
        await self.session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
        await self.session.flush()


class InMemoryKeyValueStore:
    def __init__(self, data: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(data or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)
