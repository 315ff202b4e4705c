import logging
from asyncio import Lock
from typing import Any, Dict
from uuid import NAMESPACE_URL, UUID, uuid5

from sqlalchemy.ext.asyncio import async_sessionmaker

from groupbot.crud import DeleteData, ReadData, UpdateData


class ActorStorage:
    """Key/value storage owned by exactly one named actor."""

    def __init__(self, actor_name: str, session_factory: async_sessionmaker):
        self.actor_name = actor_name
        self.Session = session_factory

    async def get(self, key: str) -> Any:
        async with self.Session() as session:
            return await ReadData.read_actor_value(self.actor_name, key, session)

    async def put(self, key: str, value: Any) -> None:
        async with self.Session() as session:
            await UpdateData.upsert_actor_value(self.actor_name, key, value, session)

    async def delete(self, key: str) -> None:
        async with self.Session() as session:
            await DeleteData.delete_actor_value(self.actor_name, key, session)


class ActorStub:
    """Handle to the single live instance bound to one name.

    Every call goes through the name's lock, so calls addressed to the same
    name run one at a time in arrival order.
    """

    def __init__(self, actor_id: UUID, instance: Any, lock: Lock):
        self.actor_id = actor_id
        self._instance = instance
        self._lock = lock

    async def call(self, method: str, *args, **kwargs) -> Any:
        async with self._lock:
            return await getattr(self._instance, method)(*args, **kwargs)


class ActorNamespace:
    """Resolves stable names to actor instances, at most one live instance per name.

    Instances stay resident for the life of the process, one per name ever
    addressed (one per LINE group for the dice game). Their state lives in
    storage, so only a reloadable cache and a lock stay in memory.
    """

    def __init__(self, actor_class: type, session_factory: async_sessionmaker, **actor_kwargs):
        self.actor_class = actor_class
        self.Session = session_factory
        self.actor_kwargs = actor_kwargs
        self.instances: Dict[UUID, Any] = {}  # actor_idごとのインスタンス
        self.locks: Dict[UUID, Lock] = {}  # actor_idごとの直列化ロック
        self.lock = Lock()  # instances/locksへのアクセスを保護

    def id_from_name(self, name: str) -> UUID:
        """Derive the stable actor id of a name

        Args:
            name (str): Stable name such as a LINE group id

        Returns:
            UUID: The same id for the same name, across processes
        """
        return uuid5(NAMESPACE_URL, f"{self.actor_class.__name__}:{name}")

    async def get(self, name: str) -> ActorStub:
        """Get the stub of the actor bound to the name, creating the instance lazily

        Args:
            name (str): Stable name such as a LINE group id

        Returns:
            ActorStub: Stub whose calls are serialized per name
        """
        actor_id = self.id_from_name(name)
        async with self.lock:
            if actor_id not in self.instances:
                storage = ActorStorage(str(actor_id), self.Session)
                self.instances[actor_id] = self.actor_class(storage, **self.actor_kwargs)
                self.locks[actor_id] = Lock()
                logging.debug(f"Created actor {self.actor_class.__name__} for {name}: {actor_id}")
            return ActorStub(actor_id, self.instances[actor_id], self.locks[actor_id])

    async def evict(self, name: str) -> None:
        """Drop the live instance of a name; the next get() rebuilds it from storage.

        Simulates a process restart for tests. Waits for the running call of
        the name to finish. Stubs handed out before the eviction keep the old
        instance, so callers must not hold a stub across an evict().
        """
        actor_id = self.id_from_name(name)
        async with self.lock:
            lock = self.locks.get(actor_id)
            if lock is None:
                return
            async with lock:
                del self.instances[actor_id]
                del self.locks[actor_id]
