"""
Хранилище отозванных токенов (logout).

Роуты получают хранилище через зависимость ``get_token_blacklist``, поэтому
процессную реализацию можно заменить общей (например, на кэше) через
``app.dependency_overrides``.
"""
import threading
import time
from typing import Dict, Optional


class TokenBlacklist:
    def add(self, token: str, expires_at: Optional[float] = None) -> None:
        raise NotImplementedError

    def __contains__(self, token: str) -> bool:
        raise NotImplementedError


class InMemoryTokenBlacklist(TokenBlacklist):
    """Process-local store. Entries are dropped once the token itself has expired."""

    def __init__(self):
        self._tokens: Dict[str, Optional[float]] = {}
        self._lock = threading.Lock()

    def add(self, token: str, expires_at: Optional[float] = None) -> None:
        with self._lock:
            self._purge_expired()
            self._tokens[token] = expires_at

    def __contains__(self, token: str) -> bool:
        with self._lock:
            if token not in self._tokens:
                return False
            expires_at = self._tokens[token]
            if expires_at is not None and expires_at <= time.time():
                del self._tokens[token]
                return False
            return True

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._tokens)

    def _purge_expired(self) -> None:
        now = time.time()
        expired = [t for t, exp in self._tokens.items() if exp is not None and exp <= now]
        for token in expired:
            del self._tokens[token]


_blacklist = InMemoryTokenBlacklist()


def get_token_blacklist() -> TokenBlacklist:
    return _blacklist
