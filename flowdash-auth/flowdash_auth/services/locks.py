import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLock:
    """按 key（规范化邮箱）串行化的临界区

    同一邮箱上的生命周期操作互斥，不同邮箱互不阻塞。锁在没有持有者时
    立即回收，字典不会随邮箱数量无限增长。只在单进程内有效。
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
