import logging
import unittest
from typing import Annotated

import pytest

from scopebind import (
    ConfigurationError,
    Inject,
    InjectLazy,
    InjectPromise,
    ParamDescriptor,
    ProvideDescriptor,
    TransientScope,
    annotate,
    has_annotation,
    inject,
    inject_lazy,
    inject_promise,
    provide,
    provide_promise,
    read_annotations,
    scope,
    transient,
    use_token,
)


class One: ...


class Two: ...


class Three: ...


REQUEST_SCOPE = "request"


class RequestScope: ...


class TestReadAnnotations(unittest.TestCase):
    def test_no_annotations(self):
        class Plain: ...

        annotations = read_annotations(Plain)

        assert annotations.provide == ProvideDescriptor()
        assert annotations.params == ()

    def test_provide(self):
        @provide(One)
        class Impl: ...

        assert read_annotations(Impl).provide == ProvideDescriptor(One, is_promise=False)

    def test_provide_promise(self):
        @provide_promise(One)
        async def fetch_one():
            return One()

        assert read_annotations(fetch_one).provide == ProvideDescriptor(One, is_promise=True)

    def test_params_from_type_hints(self):
        class Consumer:
            def __init__(self, one: One, two: Two):
                self.one = one
                self.two = two

        assert read_annotations(Consumer).params == (ParamDescriptor(One), ParamDescriptor(Two))

    def test_params_from_function_type_hints(self):
        def factory(one: One, two: Two):
            return one, two

        assert read_annotations(factory).params == (ParamDescriptor(One), ParamDescriptor(Two))

    def test_annotate_is_read_from_class_and_instance(self):
        class Consumer:
            def __init__(self, one, two):
                self.one = one
                self.two = two

        annotate(Consumer, Inject(One, Two))
        expected = (ParamDescriptor(One), ParamDescriptor(Two))

        assert read_annotations(Consumer).params == expected
        assert read_annotations(Consumer(None, None)).params == expected

    def test_stacked_decorators_read_top_to_bottom(self):
        @inject(One)
        @inject_lazy(Two)
        @inject_promise(Three)
        class Consumer:
            def __init__(self, one, two, three):
                self.args = (one, two, three)

        assert read_annotations(Consumer).params == (
            ParamDescriptor(One),
            ParamDescriptor(Two, is_lazy=True),
            ParamDescriptor(Three, is_promise=True),
        )

    def test_annotated_parameter_markers(self):
        class Consumer:
            def __init__(
                self,
                one: Annotated[object, Inject(One)],
                two: Annotated[Two, InjectLazy()],
                three: Annotated[object, InjectPromise(Three)],
                other: One,
            ):
                self.args = (one, two, three, other)

        assert read_annotations(Consumer).params == (
            ParamDescriptor(One),
            ParamDescriptor(Two, is_lazy=True),
            ParamDescriptor(Three, is_promise=True),
            ParamDescriptor(One),
        )

    def test_use_token_is_an_inject_marker(self):
        class Consumer:
            def __init__(self, value: Annotated[str, use_token("config")]):
                self.value = value

        assert read_annotations(Consumer).params == (ParamDescriptor("config"),)

    def test_subclass_inherits_declared_params(self):
        @inject(One)
        class Base:
            def __init__(self, one):
                self.one = one

        class Derived(Base): ...

        assert read_annotations(Derived).params == (ParamDescriptor(One),)

    def test_subclass_with_own_init_uses_its_own_params(self):
        @inject(One)
        class Base:
            def __init__(self, one):
                self.one = one

        class Derived(Base):
            def __init__(self, two: Two):
                self.two = two

        assert read_annotations(Derived).params == (ParamDescriptor(Two),)

    def test_annotating_subclass_does_not_change_parent(self):
        @inject(One)
        class Base:
            def __init__(self, value):
                self.value = value

        class Derived(Base): ...

        annotate(Derived, Inject(Two))

        assert read_annotations(Base).params == (ParamDescriptor(One),)
        assert read_annotations(Derived).params == (ParamDescriptor(Two),)

    def test_unresolvable_forward_reference_logs_warning(self):
        class Consumer:
            def __init__(self, thing: "Missing", port: int = 80):  # noqa: F821
                self.thing = thing
                self.port = port

        with self.assertLogs("scopebind._annotations", level=logging.WARNING) as logs:
            with pytest.raises(ConfigurationError, match="Cannot read a token for parameter 'thing'"):
                read_annotations(Consumer)

        assert "'Missing' name error retrieving Consumer" in logs.output[0]

    def test_provide_requires_a_token(self):
        with pytest.raises(ValueError, match="requires a token"):
            provide(None)


class TestHasAnnotation(unittest.TestCase):
    def test_transient(self):
        @transient
        class Counter: ...

        assert has_annotation(Counter, TransientScope)
        assert not has_annotation(One, TransientScope)

    def test_custom_class_marker(self):
        @scope(RequestScope)
        class Context: ...

        assert has_annotation(Context, RequestScope)
        assert not has_annotation(Context, TransientScope)

    def test_value_marker_matches_by_identity(self):
        @scope(REQUEST_SCOPE)
        class Context: ...

        assert has_annotation(Context, REQUEST_SCOPE)
        assert not has_annotation(Context, "session")

    def test_marker_instance_of_class(self):
        @inject_promise(One)
        class Consumer:
            def __init__(self, one):
                self.one = one

        assert has_annotation(Consumer, Inject)
        assert has_annotation(Consumer, InjectPromise)
        assert not has_annotation(Consumer, InjectLazy)

    def test_scope_is_inherited(self):
        @scope(RequestScope)
        class Base: ...

        class Derived(Base): ...

        assert has_annotation(Derived, RequestScope)
        assert has_annotation(Derived(), RequestScope)
