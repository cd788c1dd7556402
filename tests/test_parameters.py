import pytest

from rulegraph.domain import Rule
from rulegraph.expander import SpecExpander
from rulegraph.introspection import TypeIntrospector
from rulegraph.parameters import ParameterResolver

from example import (
    Archive,
    Chain,
    Clock,
    DiskStorage,
    Handler,
    Pipeline,
    Report,
    Settings,
    Storage,
    TimeZone,
)


class Built:
    def __init__(self, name, share):
        self.name = name
        self.share = share


@pytest.fixture
def calls():
    return []


@pytest.fixture
def resolver(calls):
    def get(name, args=(), share=()):
        calls.append(name)
        if name is TimeZone:
            return TimeZone("built")
        return Built(name, list(share))

    return ParameterResolver(get, SpecExpander(get))


@pytest.fixture
def bind(resolver):
    introspector = TypeIntrospector()

    def make(cls, rule=Rule()):
        return resolver.binder(introspector.constructor_parameters(cls), rule)

    return make


def test_typed_parameters_are_built_when_not_supplied(bind, calls):
    positional, keywords = bind(Clock)(["now"])

    assert positional[0] == "now"
    assert positional[1].label == "built"
    assert keywords == {}
    assert calls == [TimeZone]


def test_supplied_values_match_by_type_before_position(bind, calls):
    clock = Clock("now", TimeZone())

    positional, _ = bind(Report)(["title", 5, clock])

    assert positional == ["title", clock, 5]
    assert calls == []


def test_runtime_arguments_win_type_matches_over_construct_args(bind):
    configured = Rule(construct_args=[{"target": TimeZone}])
    zone = TimeZone("runtime")

    positional, _ = bind(Clock, configured)(["now", zone])

    assert positional[1] is zone


def test_construct_args_are_expanded_and_appended(bind):
    positional, _ = bind(Clock, Rule(construct_args=["now", {"target": TimeZone}]))([])

    assert positional[0] == "now"
    assert positional[1].label == "built"


def test_none_matches_nullable_parameters(bind, calls):
    positional, _ = bind(Report)(["title", None])

    assert positional == ["title", None, 1]
    assert calls == []


def test_defaults_then_none_fill_remaining_parameters(bind):
    positional, _ = bind(Report)([])

    assert positional[0] is None
    assert isinstance(positional[1], Built)
    assert positional[2] == 1


def test_substitution_replaces_type_resolution(bind, calls):
    rule = Rule(substitutions={Storage: {"target": DiskStorage, "construct_args": ["/data"]}})

    positional, _ = bind(Archive, rule)([])

    assert calls == [DiskStorage]
    assert positional[0].name is DiskStorage


def test_substitution_keys_may_be_dotted_paths(bind, calls):
    positional, _ = bind(Archive, Rule(substitutions={"example.Storage": "disk"}))([])

    assert calls == ["disk"]
    assert positional[0].name == "disk"


def test_supplied_value_wins_over_substitution(bind, calls):
    storage = Storage()

    positional, _ = bind(Archive, Rule(substitutions={Storage: "disk"}))([storage])

    assert positional == [storage]
    assert calls == []


def test_shared_values_are_offered_and_passed_down(bind):
    positional, _ = bind(Archive)([], ["pooled"])

    assert positional[0].share == ["pooled"]


def test_variadic_parameter_takes_every_remaining_value(bind):
    positional, _ = bind(Chain, Rule(construct_args=["b", "c"]))(["a"])

    assert positional == ["a", "b", "c"]


def test_typed_variadic_parameter_takes_every_matching_value(bind, calls):
    first, second = Handler("first"), Handler("second")

    positional, _ = bind(Pipeline)([first, "noise", second])

    assert positional == [first, second]
    assert calls == []


def test_typed_variadic_parameter_builds_one_value_when_none_match(bind, calls):
    positional, _ = bind(Pipeline)(["noise"])

    assert len(positional) == 1
    assert positional[0].name is Handler
    assert calls == [Handler]


def test_typed_variadic_parameter_uses_substitution_when_none_match(bind, calls):
    swapped = Handler("swapped")

    positional, _ = bind(Pipeline, Rule(substitutions={Handler: swapped}))([])

    assert positional == [swapped]
    assert calls == []


def test_keyword_only_parameters_are_bound_by_keyword(bind):
    positional, keywords = bind(Settings)(["app"])

    assert positional == ["app"]
    assert keywords == {"debug": False}


def test_opaque_callables_receive_values_by_position(resolver):
    bind = resolver.binder(None, Rule(construct_args=["b"]))

    assert bind(["a"], ["shared"]) == (["a", "b"], {})
