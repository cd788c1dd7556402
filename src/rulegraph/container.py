"""The container: rule table, compiled factories and shared instances.

Example:
    >>> container = Container({
    ...     "zone": {"target": "zoneinfo.ZoneInfo", "construct_args": ["Europe/London"]},
    ...     "clock": {"target": Clock, "construct_args": ["now", {"target": "zone"}]},
    ... })
    >>> container.get("clock").zone
    zoneinfo.ZoneInfo(key='Europe/London')
"""

from threading import RLock
from typing import Any, Mapping, Optional, Sequence, Union

from loguru import logger

from rulegraph.domain import Name, Rule, normalize_name
from rulegraph.expander import SpecExpander
from rulegraph.factory import Factory, FactoryCompiler
from rulegraph.introspection import TypeIntrospector
from rulegraph.parameters import ParameterResolver
from rulegraph.persistence import RuleCache, dump_rules, restore_rules
from rulegraph.rule_set import RuleSet

__all__ = ["Container", "CACHE_KEY"]

CACHE_KEY = "di.cache"
"""Key under which a :class:`~rulegraph.persistence.RuleCache` stores the merged rule table."""

RuleSpec = Union[Rule, Mapping[str, Any]]


class Container:
    """Build instances on demand from a table of rules.

    Rules are either merged from ``rules``, or taken verbatim from
    ``cached_rules`` (a table previously returned by :meth:`get_rules`) or
    from ``cache``. When a cache holds no table yet, ``rules`` are merged and
    the result is stored in it.

    Args:
        rules: Rule specifications keyed by name.
        cache: Store for the merged rule table across process restarts.
        cached_rules: A merged rule table to use instead of ``rules``.
        inherit_by_default: Inheritance policy of the rule table, see
            :class:`~rulegraph.rule_set.RuleSet`.
        introspector: Reflection capability, mainly replaced in tests.
    """

    def __init__(
        self,
        rules: Optional[Mapping[Name, RuleSpec]] = None,
        *,
        cache: Optional[RuleCache] = None,
        cached_rules: Optional[Mapping[Name, RuleSpec]] = None,
        inherit_by_default: bool = True,
        introspector: Optional[TypeIntrospector] = None,
    ):
        self._introspector = introspector or TypeIntrospector()
        self._lock = RLock()
        self._factories: dict[str, Factory] = {}
        self._instances: dict[str, Any] = {}

        expander = SpecExpander(self.get)
        resolver = ParameterResolver(self.get, expander)
        self._compiler = FactoryCompiler(
            self._introspector, resolver, expander, self.get, self._instances, self._lock
        )

        rule_set_options = dict(introspector=self._introspector, inherit_by_default=inherit_by_default)
        if cached_rules is None and cache is not None:
            stored = cache.get(CACHE_KEY)
            logger.debug("Rule cache {} for {}", "hit" if stored else "miss", CACHE_KEY)
            if stored:
                cached_rules = restore_rules(stored)

        if cached_rules:
            self._rules = RuleSet.from_table(cached_rules, **rule_set_options)
        else:
            self._rules = RuleSet(**rule_set_options)
            if rules:
                self.add_rules(rules)
                if cache is not None:
                    cache.set(CACHE_KEY, dump_rules(self._rules.rules()))

    def add_rule(self, name: Name, rule: RuleSpec) -> None:
        """Merge ``rule`` into the rule for ``name``.

        Factories already compiled for a name keep the rule they were compiled with.
        """
        self._rules.add_rule(name, rule)

    def add_rules(self, rules: Mapping[Name, RuleSpec]) -> None:
        self._rules.add_rules(rules)

    def get_rule(self, name: Name) -> Rule:
        return self._rules.get_rule(name)

    def get_rules(self) -> dict[Name, Rule]:
        """Return the merged rule table, suitable for ``cached_rules`` or persistence."""
        return self._rules.rules()

    def get(self, name: Name, args: Sequence[Any] = (), share: Sequence[Any] = ()) -> Any:
        """Return an instance for ``name``.

        A shared instance already built for ``name`` is returned as is, ignoring
        ``args`` and ``share``.

        Args:
            name: A type, dotted path or rule alias.
            args: Values offered to the constructor, matched to parameters by
                type first and then by position.
            share: Values offered to the constructor and to every dependency
                built for it.

        Raises:
            NotFoundError: If the target of ``name`` is not a known type.
        """
        key = normalize_name(name)
        if key in self._instances:
            return self._instances[key]

        factory = self._factories.get(key)
        if factory is None:
            with self._lock:
                factory = self._factories.get(key)
                if factory is None:
                    factory = self._compiler.compile(name, self._rules.get_rule(name))
                    self._factories[key] = factory

        return factory(list(args), list(share))

    def has(self, name: Name) -> bool:
        """True if ``name`` (or the target of its rule) denotes a known type.

        Nothing is constructed.
        """
        rule = self._rules.get_rule(name)
        target = rule.target if rule.target is not None else name
        return self._introspector.resolve_type(target) is not None
