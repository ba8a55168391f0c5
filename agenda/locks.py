# agenda/locks.py

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Tuple

ScopeKey = Tuple[str, str]  # (tenant_id, professional_id)


class _Scope:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0  # holders plus waiters


class ProfessionalLocks:
    """
    One mutex per (tenant, professional) calendar.

    Writers touching the same professional run one at a time; different
    professionals and tenants never wait on each other. A scope lives only
    while someone holds or waits for it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[ScopeKey, _Scope] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: ScopeKey) -> _Scope:
        with self._guard:
            scope = self._locks.get(key)
            if scope is None:
                scope = self._locks[key] = _Scope()
            scope.users += 1
            return scope

    def _checkin(self, key: ScopeKey, scope: _Scope) -> None:
        with self._guard:
            scope.users -= 1
            if scope.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: ScopeKey) -> Iterator[None]:
        # sorted acquisition keeps two-scope holders (professional swaps) deadlock free
        ordered = sorted(set(keys))
        held: List[Tuple[ScopeKey, _Scope]] = []
        try:
            for key in ordered:
                scope = self._checkout(key)
                try:
                    scope.lock.acquire()
                except BaseException:
                    self._checkin(key, scope)
                    raise
                held.append((key, scope))
            yield
        finally:
            for key, scope in reversed(held):
                scope.lock.release()
                self._checkin(key, scope)


# shared by every engine in the process
professional_locks = ProfessionalLocks()
