import logging
import threading

logger = logging.getLogger(__name__)


class ServedSet:
    """
    Process-wide record of entity ids already handed out in a tile.

    Every method holds the same lock, so two concurrent tile requests can never
    both claim one entity. The set is volatile and is cleared when a newer
    epoch is observed; within one epoch it only grows.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._served = set()
        self._epoch = None

    def rollover(self, epoch):
        """Forget served ids when the snapshot changes."""
        with self._lock:
            if self._epoch == epoch:
                return
            if self._epoch is not None:
                logger.info("[*] Epoch %s -> %s: dropping %s served ids.", self._epoch, epoch, len(self._served))
            self._epoch = epoch
            self._served.clear()

    def is_new(self, qid):
        with self._lock:
            return qid not in self._served

    def mark_served(self, qid):
        with self._lock:
            self._served.add(qid)

    def claim(self, qid):
        """Atomically mark qid as served; return False if it already was."""
        with self._lock:
            if qid in self._served:
                return False
            self._served.add(qid)
            return True

    def snapshot(self):
        with self._lock:
            return frozenset(self._served)

    def __len__(self):
        with self._lock:
            return len(self._served)
