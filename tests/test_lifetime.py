import unittest
import uuid

import pytest

from scopebind import Container, Lifetime, ScopeError


class TestLifetimeControl(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_resolve_register_singleton_returns_same_instance(self):
        class A: ...

        self.cont.register(A, impl=A, lifetime=Lifetime.SINGLETON)
        a1 = self.cont.resolve(A)
        a2 = self.cont.resolve(A)
        assert a2 is a1, "SINGLETON should return the cached instance"

    def test_register_defaults_to_singleton(self):
        class A: ...

        self.cont.register(A, factory=lambda _: A())
        assert self.cont.resolve(A) is self.cont.resolve(A)

    def test_resolve_register_transient_returns_new_instances(self):
        class A: ...

        self.cont.register(A, impl=A, lifetime=Lifetime.TRANSIENT)
        a1 = self.cont.resolve(A)
        a2 = self.cont.resolve(A)
        assert a2 is not a1, "TRANSIENT should return new instances"

    def test_transient_request_ids_are_distinct(self):
        self.cont.register("RequestId", factory=lambda _: uuid.uuid4().hex, lifetime=Lifetime.TRANSIENT)

        ids = [self.cont.resolve("RequestId") for _ in range(5)]
        assert len(set(ids)) == 5

    def test_register_instance_is_always_singleton(self):
        class A: ...

        inst = A()
        self.cont.register_instance(A, inst)
        a = self.cont.resolve(A)
        b = self.cont.resolve(A)
        assert a is inst
        assert b is inst

    def test_lifetime_accepts_string_value(self):
        self.cont.register("counter", factory=lambda _: object(), lifetime="transient")
        assert self.cont.resolve("counter") is not self.cont.resolve("counter")

    def test_scoped_service_cannot_be_resolved_from_root_container(self):
        class Session: ...

        self.cont.register(Session, impl=Session, lifetime=Lifetime.SCOPED)

        with pytest.raises(ScopeError, match="create_scope"):
            self.cont.resolve(Session)

    def test_scoped_service_is_cached_per_scope(self):
        class Session: ...

        self.cont.register(Session, impl=Session, lifetime=Lifetime.SCOPED)

        with self.cont.create_scope() as first, self.cont.create_scope() as second:
            s1 = first.resolve(Session)
            assert first.resolve(Session) is s1
            assert second.resolve(Session) is not s1
