import threading
from typing import Dict, Optional

from moviesync.domain import Category, NetworkState
from moviesync.live import MutableLiveValue


class NetworkStateTracker:
    """
    One status slot per category. Every fetch cycle gets a brand new slot, so
    observers of an earlier cycle keep seeing that cycle's outcome only.
    """

    def __init__(self):
        self._slots: Dict[Category, MutableLiveValue[NetworkState]] = {}
        self._lock = threading.Lock()

    def start(self, category: Category) -> MutableLiveValue[NetworkState]:
        slot = MutableLiveValue(NetworkState.LOADING)
        with self._lock:
            self._slots[Category(category)] = slot
        return slot

    def current(self, category: Category) -> Optional[MutableLiveValue[NetworkState]]:
        with self._lock:
            return self._slots.get(Category(category))
