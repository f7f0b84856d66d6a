import gc
import re
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from pico_ioc import EventBus

from pico_ab.bootstrap import init
from pico_ab.bucketing import BucketKeyResolver, ScopeClosedEvent, ScopeKeyTable
from pico_ab.config import ABConfig
from pico_ab.messages import ToolRequest

from conftest import Scope

HEX_KEY = re.compile(r"^[0-9a-f]{32}$")


class TestIdentityClaims:
    def test_sub_wins(self, resolver):
        request = ToolRequest(user={"sub": "u-1", "name": "alice"}, session_id="s-1")
        assert resolver.resolve(request) == "u-1"

    def test_name_fallback(self, resolver):
        assert resolver.resolve(ToolRequest(user={"name": "alice"}, session_id="s-1")) == "alice"

    def test_empty_sub_skipped(self, resolver):
        assert resolver.resolve(ToolRequest(user={"sub": "", "name": "bob"})) == "bob"

    def test_list_claim_uses_first_non_empty(self, resolver):
        assert resolver.resolve(ToolRequest(user={"sub": ["", "u-2", "u-3"]})) == "u-2"

    @pytest.mark.parametrize("user", [{"sub": 42}, {"sub": None}, {"sub": []}, {}, "not-a-mapping", ["sub"]])
    def test_malformed_claims_fall_through(self, resolver, user):
        assert resolver.resolve(ToolRequest(user=user, session_id="s-1")) == "s-1"

    def test_configured_claims(self):
        resolver = BucketKeyResolver(ABConfig(identity_claims=["email"]))
        request = ToolRequest(user={"sub": "u-1", "email": "a@example.com"})
        assert resolver.resolve(request) == "a@example.com"


class TestFallbackChain:
    def test_session_id(self, resolver):
        assert resolver.resolve(ToolRequest(session_id="s-1", transport=Scope())) == "s-1"

    def test_empty_session_id_skipped(self, resolver):
        transport = Scope()
        key = resolver.resolve(ToolRequest(session_id="", transport=transport))
        assert HEX_KEY.match(key)

    def test_transport_before_services(self, resolver):
        transport, services = Scope(), Scope()
        key = resolver.resolve(ToolRequest(transport=transport, services=services))

        assert len(resolver.transport_keys) == 1
        assert len(resolver.services_keys) == 0
        assert resolver.resolve(ToolRequest(transport=transport)) == key

    def test_services_before_server(self, resolver):
        services, server = Scope(), Scope()
        key = resolver.resolve(ToolRequest(services=services, server=server))

        assert len(resolver.services_keys) == 1
        assert len(resolver.server_keys) == 0
        assert resolver.resolve(ToolRequest(services=services)) == key

    def test_server_fallback(self, resolver):
        server = Scope()
        key = resolver.resolve(ToolRequest(server=server))
        assert HEX_KEY.match(key)
        assert resolver.resolve(ToolRequest(server=server)) == key

    def test_no_identity_at_all(self, resolver):
        key = resolver.resolve(ToolRequest())
        assert HEX_KEY.match(key)
        assert resolver.resolve(ToolRequest()) == key

    def test_resolvers_do_not_share_fallback_keys(self):
        assert BucketKeyResolver().resolve(ToolRequest()) != BucketKeyResolver().resolve(ToolRequest())


class TestScopeKeys:
    def test_stable_per_scope(self, resolver):
        transport = Scope()
        keys = {resolver.resolve(ToolRequest(transport=transport)) for _ in range(10)}
        assert len(keys) == 1

    def test_distinct_scopes_distinct_keys(self, resolver):
        keys = {resolver.resolve(ToolRequest(transport=Scope())) for _ in range(20)}
        assert len(keys) == 20

    def test_entry_reclaimed_with_scope(self, resolver):
        transport = Scope()
        resolver.resolve(ToolRequest(transport=transport))
        assert len(resolver.transport_keys) == 1

        del transport
        gc.collect()

        assert len(resolver.transport_keys) == 0

    def test_release(self, resolver):
        transport = Scope()
        first = resolver.resolve(ToolRequest(transport=transport))

        assert resolver.release(transport) is True
        assert len(resolver.transport_keys) == 0
        assert resolver.release(transport) is False

        assert resolver.resolve(ToolRequest(transport=transport)) != first

    def test_release_unknown_scope(self, resolver):
        assert resolver.release(Scope()) is False

    def test_scope_without_weakref_support(self, resolver):
        transport = object()
        key = resolver.resolve(ToolRequest(transport=transport))

        assert resolver.resolve(ToolRequest(transport=transport)) == key
        assert resolver.release(transport) is True
        assert len(resolver.transport_keys) == 0

    def test_concurrent_first_lookup_converges(self, resolver):
        transport = Scope()
        workers = 16
        barrier = threading.Barrier(workers)

        def lookup(_):
            barrier.wait()
            return resolver.resolve(ToolRequest(transport=transport))

        with ThreadPoolExecutor(max_workers=workers) as pool:
            keys = set(pool.map(lookup, range(workers)))

        assert len(keys) == 1
        assert len(resolver.transport_keys) == 1


class TestScopeKeyTable:
    def test_clear(self):
        table = ScopeKeyTable("test")
        scopes = [Scope() for _ in range(3)]
        for scope in scopes:
            table.get_or_create(scope)

        table.clear()

        assert len(table) == 0
        del scopes
        gc.collect()
        assert len(table) == 0

    def test_release_after_clear(self):
        table = ScopeKeyTable("test")
        scope = Scope()
        table.get_or_create(scope)
        table.clear()
        assert table.release(scope) is False


class TestScopeClosedEvent:
    def test_event_releases_scope(self):
        container = init(modules=["pico_ioc.event_bus"])
        resolver = container.get(BucketKeyResolver)
        bus = container.get(EventBus)

        transport = Scope()
        resolver.resolve(ToolRequest(transport=transport))
        assert len(resolver.transport_keys) == 1

        bus.publish_sync(ScopeClosedEvent(transport))

        assert len(resolver.transport_keys) == 0
        container.shutdown()

    def test_shutdown_clears_tables(self):
        container = init(modules=["pico_ioc.event_bus"])
        resolver = container.get(BucketKeyResolver)
        transport = Scope()
        resolver.resolve(ToolRequest(transport=transport))

        container.shutdown()

        assert len(resolver.transport_keys) == 0

    def test_handler_called_directly(self, resolver):
        services = Scope()
        resolver.resolve(ToolRequest(services=services))
        resolver._on_scope_closed(ScopeClosedEvent(services))
        assert len(resolver.services_keys) == 0
