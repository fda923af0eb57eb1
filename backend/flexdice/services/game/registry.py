import threading
from contextlib import contextmanager
from typing import Dict, List

from .errors import InvalidRequest


def clean_room_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidRequest('room name is required')
    return name.strip()


class RoomRegistry:
    """Active rooms, backed by the store, plus one mutex per room name.

    Every mutation of a room's session runs inside ``locked(name)`` so two
    requests for the same room never interleave; different rooms do not
    contend.
    """

    def __init__(self, store):
        self.store = store
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def lock_for(self, name: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.Lock()
            return lock

    def forget(self, name: str) -> None:
        """Drop the mutex of a removed room."""
        with self._guard:
            self._locks.pop(name, None)

    @contextmanager
    def locked(self, name: str):
        with self.lock_for(name):
            yield

    def create_room(self, name: str):
        return self.store.create_room(clean_room_name(name))

    def remove_room(self, name: str) -> None:
        self.store.delete_room(clean_room_name(name))

    def list_rooms(self) -> List[str]:
        return self.store.list_room_names()

    def exists(self, name: str) -> bool:
        return self.store.room_exists(name)
