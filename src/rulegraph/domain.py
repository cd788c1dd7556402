"""Domain models used throughout the framework."""

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional, Union

from rulegraph.errors import RuleError

__all__ = [
    "Name",
    "DEFAULT_RULE",
    "Rule",
    "PostCall",
    "Parameter",
    "normalize_name",
    "is_descriptor",
]

Name = Union[str, type]
"""Key used to look up rules, factories and shared instances.

A name is either a type, a dotted import path naming a type, or an arbitrary
alias such as ``"zone"``.
"""

DEFAULT_RULE = "*"
"""Reserved name of the rule applied when nothing more specific matches."""


def normalize_name(name: Name) -> str:
    """Return the lookup key for ``name``.

    Types are keyed by their dotted path, so ``datetime.timezone`` and
    ``"datetime.timezone"`` share one key. Leading separators are stripped and
    the key is lower-cased.

    Example:
        >>> normalize_name(".Zone")
        'zone'
    """
    if isinstance(name, type):
        name = f"{name.__module__}.{name.__qualname__}"
    return name.lstrip(".").lower()


def is_descriptor(spec: Any) -> bool:
    """True if ``spec`` is a nested construction descriptor."""
    return isinstance(spec, Mapping) and "target" in spec


@dataclass(frozen=True)
class PostCall:
    """A method invoked on an instance right after it has been constructed.

    Attributes:
        method: Name of the method to call.
        args: Argument specifications, expanded and bound like constructor arguments.
    """

    method: str
    args: tuple = ()

    @staticmethod
    def coerce(value: Any) -> "PostCall":
        if isinstance(value, PostCall):
            return value
        if isinstance(value, str):
            return PostCall(value)
        if (
            isinstance(value, (list, tuple))
            and 1 <= len(value) <= 2
            and isinstance(value[0], str)
            and (len(value) == 1 or isinstance(value[1], (list, tuple)))
        ):
            return PostCall(value[0], tuple(value[1]) if len(value) > 1 else ())
        raise RuleError(f"Malformed post call {value!r}: expected (method, args)")


@dataclass(frozen=True)
class Rule:
    """Configuration describing how instances are built for a name.

    Every field defaults to ``None``, meaning "unset". This matters for
    ``inherit``, where an unset value and an explicit ``False`` are treated
    differently by the inheritance policy of :class:`~rulegraph.rule_set.RuleSet`.

    Attributes:
        target: The type (or dotted path, or alias) to build instead of the name itself.
        construct_args: Ordered argument specifications passed to the constructor.
        shared: If true, the first instance built is reused for every later lookup.
        share_instances: Names whose instances are pushed into the shared-value pool
            handed down to nested construction.
        substitutions: Declared parameter type to the specification bound in its place.
        inherit: Whether the rule applies to subclasses of the type it is keyed by.
        static_factory: Name of a class or static method called instead of the constructor.
        post_calls: Methods invoked on the instance after construction.
    """

    target: Optional[Any] = None
    construct_args: Optional[list] = None
    shared: Optional[bool] = None
    share_instances: Optional[list] = None
    substitutions: Optional[dict] = None
    inherit: Optional[bool] = None
    static_factory: Optional[str] = None
    post_calls: Optional[tuple[PostCall, ...]] = None

    @staticmethod
    def from_mapping(spec: Union["Rule", Mapping[str, Any]]) -> "Rule":
        """Build a rule from its declarative mapping form.

        Raises:
            RuleError: If ``spec`` is not a mapping or carries unknown fields.
        """
        if isinstance(spec, Rule):
            return spec
        if not isinstance(spec, Mapping):
            raise RuleError(f"Rule must be a mapping, got {type(spec).__name__}")

        known = {f.name for f in fields(Rule)}
        unknown = set(spec) - known
        if unknown:
            raise RuleError(f"Unknown rule fields {sorted(unknown)}")

        values = dict(spec)
        for list_field in ("construct_args", "share_instances"):
            if values.get(list_field) is not None:
                values[list_field] = list(values[list_field])
        if values.get("substitutions") is not None:
            values["substitutions"] = dict(values["substitutions"])
        if values.get("post_calls") is not None:
            values["post_calls"] = tuple(PostCall.coerce(c) for c in values["post_calls"])
        return Rule(**values)

    def merge(self, other: "Rule") -> "Rule":
        """Return this rule with every field set on ``other`` overriding it.

        The merge is shallow: list and mapping fields are replaced, not combined.
        """
        overrides = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **overrides)

    def to_mapping(self) -> dict[str, Any]:
        """Return the set fields as a plain mapping."""
        mapping = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name == "post_calls":
                value = [[call.method, list(call.args)] for call in value]
            mapping[f.name] = value
        return mapping

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass(frozen=True)
class Parameter:
    """A formal parameter of a constructor or method, as seen by the resolver.

    Attributes:
        name: The parameter name.
        declared_type: The class the parameter is resolved by, or None if it is
            untyped or typed with a builtin value type.
        nullable: Whether ``None`` is an acceptable value.
        variadic: True for ``*args`` parameters.
        keyword_only: True for parameters that must be passed by keyword.
        has_default: Whether a default value is available.
        default: The default value, if any.
    """

    name: str
    declared_type: Optional[type] = None
    nullable: bool = False
    variadic: bool = False
    keyword_only: bool = False
    has_default: bool = False
    default: Any = None
