"""Bucket key derivation for variant selection.

``BucketKeyResolver`` turns a ``ToolRequest`` into the identity string that
seeds the variant hash.  Authenticated identity and protocol sessions are
used as-is; otherwise an ephemeral random key is generated once per scope
object (transport connection, service scope, server) and reused for as long
as that scope lives.
"""

import secrets
import threading
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from pico_ioc import Event, EventBus, PicoContainer, cleanup, component, configure

from .config import ABConfig
from .logging import get_logger
from .messages import ToolRequest

logger = get_logger(__name__)


@dataclass
class ScopeClosedEvent(Event):
    """Published by the hosting layer when a connection or scope is torn down.

    Args:
        scope: The transport, service-scope or server object being closed.
    """

    scope: Any


class BucketKeyHolder:
    """A random 128-bit token, rendered as hex, generated once per scope."""

    __slots__ = ("key",)

    def __init__(self):
        self.key = secrets.token_hex(16)


@dataclass
class _ScopeEntry:
    ref: Callable[[], Any]
    holder: BucketKeyHolder
    finalizer: Optional[weakref.finalize] = None


class ScopeKeyTable:
    """Side table mapping scope objects to their ephemeral bucket key.

    Entries are keyed by object identity.  Scopes that support weak
    references are tracked weakly and their entry is dropped when they are
    garbage collected; other scopes are held until ``release()``.

    Reads of populated entries take no lock.  Creation is serialized so
    concurrent first lookups of one scope observe the same key.
    """

    def __init__(self, name: str):
        self.name = name
        self._entries: Dict[int, _ScopeEntry] = {}
        self._lock = threading.RLock()

    def get_or_create(self, scope: Any) -> str:
        scope_id = id(scope)
        entry = self._entries.get(scope_id)
        if entry is not None and entry.ref() is scope:
            return entry.holder.key

        with self._lock:
            entry = self._entries.get(scope_id)
            if entry is not None and entry.ref() is scope:
                return entry.holder.key

            holder = BucketKeyHolder()
            self._entries[scope_id] = self._attach(scope, holder)
            logger.debug("Generated %s bucket key for scope %s", self.name, type(scope).__name__)
            return holder.key

    def _attach(self, scope: Any, holder: BucketKeyHolder) -> _ScopeEntry:
        try:
            ref = weakref.ref(scope)
        except TypeError:
            return _ScopeEntry(ref=lambda: scope, holder=holder)

        finalizer = weakref.finalize(scope, self._discard, id(scope), holder)
        return _ScopeEntry(ref=ref, holder=holder, finalizer=finalizer)

    def _discard(self, scope_id: int, holder: BucketKeyHolder) -> None:
        with self._lock:
            entry = self._entries.get(scope_id)
            if entry is not None and entry.holder is holder:
                del self._entries[scope_id]

    def release(self, scope: Any) -> bool:
        with self._lock:
            entry = self._entries.get(id(scope))
            if entry is None or entry.ref() is not scope:
                return False
            del self._entries[id(scope)]

        if entry.finalizer is not None:
            entry.finalizer.detach()
        return True

    def clear(self) -> None:
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            if entry.finalizer is not None:
                entry.finalizer.detach()

    def __len__(self) -> int:
        return len(self._entries)


@component(scope="singleton")
class BucketKeyResolver:
    """Derives the bucket key of a request through a fallback chain.

    Order: identity claims (``ABConfig.identity_claims``, ``sub`` then
    ``name`` by default), session id, then ephemeral keys cached against the
    transport, the service scope and finally the server.  A request without
    a server falls back to a key owned by the resolver itself, so
    ``resolve()`` always returns a key.

    Args:
        config: Routing configuration; defaults to ``ABConfig()``.
    """

    def __init__(self, config: Optional[ABConfig] = None):
        self.config = config or ABConfig()
        self.transport_keys = ScopeKeyTable("transport")
        self.services_keys = ScopeKeyTable("services")
        self.server_keys = ScopeKeyTable("server")
        self._event_bus: Optional[EventBus] = None
        self._scope_handler: Optional[Callable[[ScopeClosedEvent], None]] = None

    def resolve(self, request: ToolRequest) -> str:
        """Return the bucket key for *request*.

        Args:
            request: The incoming request.

        Returns:
            A caller-stable, non-empty identity string.
        """
        key = self._from_claims(request.user)
        if key:
            return key

        if isinstance(request.session_id, str) and request.session_id:
            return request.session_id

        if request.transport is not None:
            return self.transport_keys.get_or_create(request.transport)

        if request.services is not None:
            return self.services_keys.get_or_create(request.services)

        server = request.server if request.server is not None else self
        return self.server_keys.get_or_create(server)

    def _from_claims(self, claims: Any) -> Optional[str]:
        if not isinstance(claims, Mapping):
            return None

        for claim in self.config.identity_claims:
            value = claims.get(claim)
            if isinstance(value, (list, tuple)):
                value = next((v for v in value if isinstance(v, str) and v), None)
            if isinstance(value, str) and value:
                return value
        return None

    def release(self, scope: Any) -> bool:
        """Forget the ephemeral key cached for *scope*.

        Call this from connection-closed or scope-disposed hooks.

        Args:
            scope: The transport, service-scope or server object.

        Returns:
            ``True`` if a cached key was removed.
        """
        released = False
        for table in (self.transport_keys, self.services_keys, self.server_keys):
            released = table.release(scope) or released
        return released

    def _on_scope_closed(self, event: ScopeClosedEvent) -> None:
        self.release(event.scope)

    @configure
    def _subscribe_scope_events(self, container: PicoContainer):
        if container.has(EventBus):
            self._event_bus = container.get(EventBus)
            self._scope_handler = self._on_scope_closed
            self._event_bus.subscribe(ScopeClosedEvent, self._scope_handler)

    @cleanup
    def _on_shutdown(self):
        if self._event_bus is not None:
            self._event_bus.unsubscribe(ScopeClosedEvent, self._scope_handler)
        for table in (self.transport_keys, self.services_keys, self.server_keys):
            table.clear()
