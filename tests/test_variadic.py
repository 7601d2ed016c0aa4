import unittest

from scopebind import Container


class TestVariadicConstructorInjection(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_resolve_ignores_inherited_variadic_args_and_kwargs(self):
        class Base:
            def __init__(self, value: int = 7, *args, **kwargs):
                self.value = value
                self.args = args
                self.kwargs = kwargs

        class Derived(Base):
            ...
            # No explicit __init__; inherits Base.__init__ with *args/**kwargs

        self.cont.register(Derived, impl=Derived)
        child = self.cont.resolve(Derived)  # should ignore *args/**kwargs and use default for 'value'

        assert isinstance(child, Derived)
        assert child.value == 7
        assert child.args == ()
        assert child.kwargs == {}

    def test_resolve_injects_positional_only_parameters(self):
        class Clock: ...

        class Scheduler:
            def __init__(self, clock: Clock, /, interval: float = 1.0):
                self.clock = clock
                self.interval = interval

        self.cont.register(Clock, impl=Clock)
        self.cont.register(Scheduler, impl=Scheduler)
        self.cont.register_instance("interval", 0.5)

        scheduler = self.cont.resolve(Scheduler)
        assert scheduler.clock is self.cont.resolve(Clock)
        assert scheduler.interval == 0.5

    def test_resolve_injects_keyword_only_parameters(self):
        class Settings:
            def __init__(self, *, debug: bool = False, name: str):
                self.debug = debug
                self.name = name

        self.cont.register(Settings, impl=Settings)
        self.cont.register_instance("name", "pins")

        settings = self.cont.resolve(Settings)
        assert settings.name == "pins"
        assert settings.debug is False
