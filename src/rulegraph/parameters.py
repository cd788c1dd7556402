"""Binding of runtime arguments, rule arguments and dependencies to parameters."""

from typing import Any, Callable, Optional

from rulegraph.domain import Parameter, Rule, normalize_name
from rulegraph.expander import Getter, SpecExpander

__all__ = ["Binder", "ParameterResolver"]

Binder = Callable[..., tuple[list, dict]]
"""``binder(args, share=())`` returning positional and keyword arguments for one call."""

_MISSING = object()


class ParameterResolver:
    """Turn a parameter list and a rule into a reusable :data:`Binder`.

    The parameter metadata and substitutions are analysed once; the returned
    binder is then called for every construction.
    """

    def __init__(self, get: Getter, expander: SpecExpander):
        self._get = get
        self._expander = expander

    def binder(self, parameters: Optional[list[Parameter]], rule: Rule) -> Binder:
        """Build a binder for ``parameters`` configured by ``rule``.

        For each parameter, in declaration order, the binder uses the first of:

        1. the first supplied value that is an instance of the declared type
           (or None, if the parameter is nullable), removed from the supplied values;
        2. for a typed parameter, the rule's substitution for that type or an
           instance of the type obtained from the container;
        3. the next supplied value, by position;
        4. the parameter's default;
        5. None.

        A ``*args`` parameter is filled differently. When typed, it takes every
        supplied value matching the type, or a single value resolved as in
        step 2 if none match. When untyped, it takes every remaining supplied
        value rather than only the next one.

        Supplied values are the runtime arguments followed by the expanded
        ``construct_args`` of the rule and then the shared values, so runtime
        arguments win type matches.

        Args:
            parameters: The parameters to fill, or None if the callable could
                not be introspected, in which case supplied values are passed
                through by position.
            rule: The rule providing ``construct_args`` and ``substitutions``.
        """
        if parameters is None:
            return self._opaque_binder(rule)

        substitutions = {
            normalize_name(declared): spec
            for declared, spec in (rule.substitutions or {}).items()
        }
        plan = [
            (
                parameter,
                substitutions.get(normalize_name(parameter.declared_type), _MISSING)
                if parameter.declared_type is not None
                else _MISSING,
            )
            for parameter in parameters
        ]
        construct_args = rule.construct_args

        def bind(args, share=()):
            args = list(args)
            share = list(share)
            if share or construct_args is not None:
                configured = self._expander.expand(construct_args, share) if construct_args else []
                args = [*args, *configured, *share]

            positional: list = []
            keywords: dict[str, Any] = {}
            for parameter, substitution in plan:
                if parameter.variadic:
                    positional.extend(self._resolve_variadic(parameter, substitution, args, share))
                    continue

                value = self._resolve(parameter, substitution, args, share)
                if parameter.keyword_only:
                    keywords[parameter.name] = value
                else:
                    positional.append(value)
            return positional, keywords

        return bind

    def _resolve(self, parameter: Parameter, substitution: Any, args: list, share: list) -> Any:
        declared_type = parameter.declared_type
        if declared_type is not None:
            for index, arg in enumerate(args):
                if isinstance(arg, declared_type) or (arg is None and parameter.nullable):
                    return args.pop(index)
            if substitution is _MISSING:
                return self._get(declared_type, [], share)
            return self._expander.expand(substitution, share, force=True)

        if args:
            return self._expander.expand(args.pop(0))
        if parameter.has_default:
            return parameter.default
        return None

    def _resolve_variadic(self, parameter: Parameter, substitution: Any, args: list, share: list) -> list:
        declared_type = parameter.declared_type
        if declared_type is None:
            values = [self._expander.expand(arg) for arg in args]
            args.clear()
            return values

        matching = [
            isinstance(arg, declared_type) or (arg is None and parameter.nullable)
            for arg in args
        ]
        values = [arg for arg, matched in zip(args, matching) if matched]
        if not values:
            return [self._resolve(parameter, substitution, args, share)]
        args[:] = [arg for arg, matched in zip(args, matching) if not matched]
        return values

    def _opaque_binder(self, rule: Rule) -> Binder:
        construct_args = rule.construct_args

        def bind(args, share=()):
            configured = self._expander.expand(construct_args, share) if construct_args else []
            return [*(self._expander.expand(arg) for arg in args), *configured], {}

        return bind
