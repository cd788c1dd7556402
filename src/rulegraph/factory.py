"""Compilation of rules into factories.

A factory is compiled once per name: the target type is resolved and its
constructor introspected up front, so building further instances only runs
the argument binder and the constructor.
"""

from threading import RLock
from typing import Any, Callable, Optional

from loguru import logger

from rulegraph.domain import Name, Parameter, Rule, normalize_name
from rulegraph.errors import NotFoundError
from rulegraph.expander import Getter, SpecExpander
from rulegraph.introspection import TypeIntrospector
from rulegraph.parameters import Binder, ParameterResolver

__all__ = ["Factory", "FactoryCompiler"]

Factory = Callable[[list, list], Any]
"""``factory(args, share)`` returning an instance for one name."""


class FactoryCompiler:
    """Compile a name and its rule into a :data:`Factory`.

    Args:
        introspector: Reflection over the target types.
        resolver: Builds argument binders for constructors and methods.
        expander: Expands post call argument specifications.
        get: The container's ``get``, used to resolve ``share_instances``.
        instances: The container's shared-instance store, written by shared factories.
        lock: Guards writes to ``instances``.
    """

    def __init__(
        self,
        introspector: TypeIntrospector,
        resolver: ParameterResolver,
        expander: SpecExpander,
        get: Getter,
        instances: dict[str, Any],
        lock: RLock,
    ):
        self._introspector = introspector
        self._resolver = resolver
        self._expander = expander
        self._get = get
        self._instances = instances
        self._lock = lock

    def compile(self, name: Name, rule: Rule) -> Factory:
        """Build the factory for ``name``.

        Raises:
            NotFoundError: If the rule's target (or the name itself) is not a known type.
            AttributeError: If the rule's static factory does not exist on the target.
        """
        target = rule.target if rule.target is not None else name
        cls = self._introspector.resolve_type(target)
        if cls is None:
            raise NotFoundError(f"No type found for {target!r} (requested as {name!r})")

        if rule.static_factory:
            build_with = getattr(cls, rule.static_factory)
            parameters = self._introspector.method_parameters(cls, rule.static_factory)
        else:
            build_with = cls
            parameters = self._introspector.constructor_parameters(cls)

        binder = self._resolver.binder(parameters, rule) if parameters != [] else None

        if rule.shared:
            factory = self._shared_factory(normalize_name(name), cls, build_with, binder, bool(rule.static_factory))
        elif binder is not None:
            def factory(args, share):
                positional, keywords = binder(args, share)
                return build_with(*positional, **keywords)
        else:
            def factory(args, share):
                return build_with()

        if rule.share_instances is not None:
            factory = self._sharing_instances(factory, list(rule.share_instances))

        if rule.post_calls:
            factory = self._with_post_calls(factory, rule)

        logger.debug("Compiled factory for {!r} building {}", name, cls.__qualname__)
        return factory

    def _shared_factory(
        self,
        key: str,
        cls: type,
        build_with: Callable,
        binder: Optional[Binder],
        static: bool,
    ) -> Factory:
        """Build a factory registering its instance before running the initializer.

        Registering first means that a dependency which (directly or not)
        needs this instance back finds it in the store instead of building it
        again. Instances that cannot be allocated ahead of initialisation are
        registered once built.
        """
        allocate_first = not static and self._introspector.can_allocate(cls)

        def factory(args, share):
            with self._lock:
                if key in self._instances:
                    return self._instances[key]
                try:
                    if allocate_first:
                        instance = self._introspector.allocate(cls)
                        self._instances[key] = instance
                        positional, keywords = binder(args, share) if binder else ([], {})
                        self._introspector.initialize(instance, positional, keywords)
                    else:
                        positional, keywords = binder(args, share) if binder else ([], {})
                        instance = build_with(*positional, **keywords)
                        self._instances[key] = instance
                except Exception:
                    self._instances.pop(key, None)
                    raise
                logger.debug("Registered shared instance {}", key)
                return instance

        return factory

    def _sharing_instances(self, factory: Factory, names: list[Name]) -> Factory:
        def sharing(args, share):
            shared = [self._get(name) for name in names]
            return factory(args, [*args, *share, *shared])

        return sharing

    def _with_post_calls(self, factory: Factory, rule: Rule) -> Factory:
        call_rule = Rule(share_instances=rule.share_instances)
        binders: dict[str, Binder] = {}

        def calling(args, share):
            instance = factory(args, share)
            for call in rule.post_calls:
                if call.method not in binders:
                    parameters: Optional[list[Parameter]] = self._introspector.method_parameters(
                        instance, call.method
                    )
                    binders[call.method] = self._resolver.binder(parameters, call_rule)
                positional, keywords = binders[call.method](self._expander.expand(list(call.args)))
                getattr(instance, call.method)(*positional, **keywords)
            return instance

        return calling
