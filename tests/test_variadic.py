import unittest

from scopebind import Injector, ParamDescriptor, read_annotations


class TestVariadicConstructorInjection(unittest.TestCase):
    injector: Injector

    def setUp(self):
        self.injector = Injector()

    def test_get_ignores_inherited_variadic_args_and_kwargs(self):
        class Base:
            def __init__(self, value: int = 7, *args, **kwargs):
                self.value = value
                self.args = args
                self.kwargs = kwargs

        class Derived(Base):
            ...
            # No explicit __init__; inherits Base.__init__ with *args/**kwargs

        child = self.injector.get(Derived)  # should ignore *args/**kwargs and use default for 'value'
        assert isinstance(child, Derived)
        assert child.value == 7
        assert child.args == ()
        assert child.kwargs == {}

    def test_params_stop_at_variadic_positional(self):
        class Dep: ...

        class WithArgs:
            def __init__(self, dep: Dep, *extras: Dep):
                self.dep = dep
                self.extras = extras

        assert read_annotations(WithArgs).params == (ParamDescriptor(Dep),)

        obj = self.injector.get(WithArgs)
        assert obj.dep is self.injector.get(Dep)
        assert obj.extras == ()

    def test_keyword_only_parameters_keep_their_defaults(self):
        class Dep: ...

        class WithKeywordOnly:
            def __init__(self, dep: Dep, *, retries: int = 3, name: Dep = None):
                self.dep = dep
                self.retries = retries
                self.name = name

        obj = self.injector.get(WithKeywordOnly)
        assert isinstance(obj.dep, Dep)
        assert obj.retries == 3
        assert obj.name is None
