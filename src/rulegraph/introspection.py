"""Runtime type introspection used to compile factories.

All reflection over user types goes through :class:`TypeIntrospector`, so the
rest of the framework never touches ``inspect`` or ``importlib`` directly.
"""

import builtins
import importlib
import inspect
import types
from typing import Any, Callable, Optional, Union, get_args, get_origin, get_type_hints

from rulegraph.domain import Name, Parameter

__all__ = ["TypeIntrospector", "VALUE_TYPES"]

VALUE_TYPES = frozenset(
    {str, int, float, bool, bytes, complex, list, dict, tuple, set, frozenset, object, type}
)
"""Builtin types that are never resolved by construction.

A parameter annotated with one of these behaves as if it were untyped: it is
filled from the supplied arguments by position.
"""


class TypeIntrospector:
    """Reflection capability over Python types."""

    def resolve_type(self, name: Name) -> Optional[type]:
        """Return the type denoted by ``name``, or None if there is none.

        Strings are treated as dotted import paths (``"datetime.timezone"``,
        ``"pkg.module.Outer.Inner"``); a bare identifier is looked up among
        the builtins.
        """
        if isinstance(name, type):
            return name
        if not isinstance(name, str) or not name:
            return None

        parts = name.lstrip(".").split(".")
        if len(parts) == 1:
            found = getattr(builtins, parts[0], None)
            return found if isinstance(found, type) else None

        for split in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:split])
            try:
                found: Any = importlib.import_module(module_name)
            except (ImportError, ValueError):
                continue
            try:
                for attribute in parts[split:]:
                    found = getattr(found, attribute)
            except AttributeError:
                return None
            return found if isinstance(found, type) else None
        return None

    def constructor_parameters(self, cls: type) -> Optional[list[Parameter]]:
        """Describe the parameters accepted when calling ``cls``.

        Returns:
            An empty list for classes without a constructor of their own, or
            None if the signature cannot be introspected (some builtin types).
        """
        if cls.__init__ is object.__init__ and cls.__new__ is object.__new__:
            return []
        initializer = cls.__init__ if cls.__init__ is not object.__init__ else cls.__new__
        return self._parameters_of(cls, initializer)

    def method_parameters(self, owner: Any, method_name: str) -> Optional[list[Parameter]]:
        """Describe the parameters of ``owner.method_name``.

        ``owner`` is a type for static factories and an instance for post calls,
        so the implicit ``self``/``cls`` parameter is never reported.

        Raises:
            AttributeError: If ``owner`` has no such attribute.
        """
        method = getattr(owner, method_name)
        return self._parameters_of(method, method)

    def is_subtype(self, candidate: type, base: type) -> bool:
        """True if ``candidate`` is a proper subclass of ``base``."""
        return candidate is not base and issubclass(candidate, base)

    def can_allocate(self, cls: type) -> bool:
        """True if ``cls`` can be allocated before its initializer runs."""
        return cls.__new__ is object.__new__

    def allocate(self, cls: type) -> Any:
        """Create an instance of ``cls`` without running ``__init__``."""
        return cls.__new__(cls)

    def initialize(self, instance: Any, positional: list, keywords: dict) -> None:
        """Run the initializer of an allocated instance."""
        type(instance).__init__(instance, *positional, **keywords)

    def _parameters_of(self, signature_source: Callable, hints_source: Callable) -> Optional[list[Parameter]]:
        try:
            signature = inspect.signature(signature_source)
        except (TypeError, ValueError):
            return None
        try:
            hints = get_type_hints(hints_source)
        except (NameError, TypeError):
            hints = {}

        return [
            _make_parameter(param, hints.get(name, param.annotation))
            for name, param in signature.parameters.items()
            if param.kind is not inspect.Parameter.VAR_KEYWORD
        ]


def _make_parameter(param: inspect.Parameter, annotation: Any) -> Parameter:
    declared_type, nullable = _unwrap_annotation(annotation)
    has_default = param.default is not inspect.Parameter.empty
    return Parameter(
        name=param.name,
        declared_type=declared_type,
        nullable=nullable or (has_default and param.default is None),
        variadic=param.kind is inspect.Parameter.VAR_POSITIONAL,
        keyword_only=param.kind is inspect.Parameter.KEYWORD_ONLY,
        has_default=has_default,
        default=param.default if has_default else None,
    )


def _unwrap_annotation(annotation: Any) -> tuple[Optional[type], bool]:
    """Reduce an annotation to the injectable class it names and its nullability.

    Example:
        >>> _unwrap_annotation(Optional[Clock])
        (Clock, True)
        >>> _unwrap_annotation(str)
        (None, False)
    """
    if annotation is inspect.Parameter.empty or isinstance(annotation, str):
        return None, False

    nullable = False
    if get_origin(annotation) in (Union, types.UnionType):
        members = get_args(annotation)
        nullable = type(None) in members
        members = [m for m in members if m is not type(None)]
        if len(members) != 1:
            return None, nullable
        annotation = members[0]

    if inspect.isclass(annotation) and get_origin(annotation) is None and annotation not in VALUE_TYPES:
        return annotation, nullable
    return None, nullable
