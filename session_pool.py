"""Process-wide pool of capability sessions.

Sessions are expensive to create, so one session is kept per
``(capability, language)`` key and lent out to callers through ``lease()``.
Only the prompt capability is language-specific; the other capabilities share a
single key with ``language=None``.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from capabilities import CapabilityName
from errors import SessionCreationError

logger = logging.getLogger(__name__)

PoolKey = Tuple[CapabilityName, Optional[str]]


@dataclass
class _Slot:
    session: Any = None
    creating: Optional[asyncio.Task] = None
    leases: int = 0
    evicted: bool = False


class SessionPool:
    """Owns capability sessions and guarantees at most one live session per key."""

    def __init__(self, providers: Dict[CapabilityName, Any]):
        self._providers = providers
        self._slots: Dict[PoolKey, _Slot] = {}

    def init(self) -> None:
        """Start from an empty pool. Sessions still held are not released."""
        self._slots = {}

    @property
    def size(self) -> int:
        return sum(1 for slot in self._slots.values() if slot.session is not None)

    @staticmethod
    def make_key(name: CapabilityName, language: Optional[str] = None) -> PoolKey:
        name = CapabilityName(name)
        return (name, language if name is CapabilityName.PROMPT else None)

    @asynccontextmanager
    async def lease(self, name: CapabilityName, language: Optional[str] = None):
        """Borrow the pooled session for ``name``, creating it on first use.

        Concurrent leases for the same key wait on a single in-flight creation.

        Raises:
            SessionCreationError: If the provider fails to create the session
        """
        key = self.make_key(name, language)
        slot = self._slots.get(key)
        if slot is None:
            slot = _Slot()
            self._slots[key] = slot

        slot.leases += 1
        try:
            session = await self._get_or_create(key, slot)
            yield session
        finally:
            slot.leases -= 1
            if slot.evicted and slot.leases == 0 and slot.session is not None:
                await self._release_session(key, slot.session)
                slot.session = None

    async def _get_or_create(self, key: PoolKey, slot: _Slot):
        if slot.session is not None:
            return slot.session

        if slot.creating is None:
            slot.creating = asyncio.ensure_future(self._create(key, slot))

        try:
            return await asyncio.shield(slot.creating)
        except Exception as e:
            if self._slots.get(key) is slot and slot.session is None:
                del self._slots[key]
            if isinstance(e, SessionCreationError):
                raise
            raise SessionCreationError(key[0].value, key[1], str(e)) from e

    async def _create(self, key: PoolKey, slot: _Slot):
        name, language = key
        provider = self._providers.get(name)
        try:
            if provider is None:
                raise SessionCreationError(name.value, language, "no provider registered")
            session = await provider.create_session(output_language=language)
        finally:
            slot.creating = None
        slot.session = session
        logger.info(f"Created {name.value} session (language={language})")
        return session

    async def release_all(self) -> None:
        """Release every pooled session. Safe to call repeatedly.

        Sessions that are currently leased are released when their last lease ends.
        """
        slots, self._slots = self._slots, {}
        released = 0
        for key, slot in slots.items():
            if slot.leases > 0 or slot.creating is not None:
                slot.evicted = True
                continue
            if slot.session is not None:
                await self._release_session(key, slot.session)
                slot.session = None
                released += 1
        if slots:
            logger.info(f"Released {released} capability sessions")

    async def _release_session(self, key: PoolKey, session) -> None:
        try:
            await session.release()
        except Exception as e:
            logger.warning(f"Failed to release {key[0].value} session: {str(e)}")
