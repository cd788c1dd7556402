"""Registration and lookup of construction rules."""

from typing import Any, Mapping, Optional, Union

from loguru import logger

from rulegraph.domain import DEFAULT_RULE, Name, Rule, normalize_name
from rulegraph.introspection import TypeIntrospector

__all__ = ["RuleSet"]


class RuleSet:
    """Mapping from normalised names to rules, with inherited and default lookup.

    Args:
        introspector: Used to decide whether a name denotes a subclass of a
            type a rule is keyed by.
        inherit_by_default: If True, a rule whose ``inherit`` field is unset
            applies to subclasses; only ``inherit=False`` stops it. If False,
            only ``inherit=True`` makes a rule apply to subclasses.
    """

    def __init__(
        self,
        introspector: Optional[TypeIntrospector] = None,
        inherit_by_default: bool = True,
    ):
        self._introspector = introspector or TypeIntrospector()
        self._inherit_by_default = inherit_by_default
        self._rules: dict[str, Rule] = {}
        self._names: dict[str, Name] = {}

    @classmethod
    def from_table(cls, table: Mapping[str, Union[Rule, Mapping[str, Any]]], **kwargs) -> "RuleSet":
        """Load an already merged rule table verbatim, without merging again."""
        rule_set = cls(**kwargs)
        for name, rule in table.items():
            key = normalize_name(name)
            rule_set._rules[key] = Rule.from_mapping(rule)
            rule_set._names[key] = name
        return rule_set

    def add_rule(self, name: Name, rule: Union[Rule, Mapping[str, Any]]) -> None:
        """Merge ``rule`` over the rule currently resolved for ``name``.

        Args:
            name: A type, dotted path or alias.
            rule: A :class:`Rule` or its mapping form.

        Raises:
            RuleError: If ``rule`` is malformed.
        """
        key = normalize_name(name)
        self._rules[key] = self.get_rule(name).merge(Rule.from_mapping(rule))
        self._names.setdefault(key, name)
        logger.debug("Added rule for {}", key)

    def add_rules(self, rules: Mapping[Name, Union[Rule, Mapping[str, Any]]]) -> None:
        for name, rule in rules.items():
            self.add_rule(name, rule)

    def get_rule(self, name: Name) -> Rule:
        """Return the rule that applies to ``name``.

        Resolution order is: the rule registered under ``name``; the first rule
        (in registration order) keyed by a type that ``name`` subclasses and
        that may be inherited; the default rule ``"*"``; an empty rule.
        Unknown names never raise.
        """
        key = normalize_name(name)
        if key in self._rules:
            return self._rules[key]

        candidate = None
        for rule_key, rule in self._rules.items():
            if rule_key == DEFAULT_RULE or rule.target is not None or not self._inherits(rule):
                continue
            if candidate is None:
                candidate = self._introspector.resolve_type(name)
                if candidate is None:
                    break
            base = self._introspector.resolve_type(self._names[rule_key])
            if base is not None and self._introspector.is_subtype(candidate, base):
                return rule

        return self._rules.get(DEFAULT_RULE, Rule())

    def rules(self) -> dict[Name, Rule]:
        """Return the merged rule table, keyed by the names rules were added under."""
        return {self._names[key]: rule for key, rule in self._rules.items()}

    def _inherits(self, rule: Rule) -> bool:
        if rule.inherit is None:
            return self._inherit_by_default
        return rule.inherit
