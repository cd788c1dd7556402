"""Rulegraph: rule-driven object graph construction.

Rulegraph builds fully initialised objects from a table of declarative rules.
A rule is attached to a name, which is either a type, a dotted path naming a
type, or an arbitrary alias, and says which type to build, which arguments to
pass, whether the instance is shared, and which methods to call once it
exists. Everything the rules leave open is filled in from constructor type
hints: a parameter annotated with a class is satisfied with an instance of
that class, built under that class's own rule.

Key Features:
    - Rule lookup by exact name, by rules inherited from base classes, and by a
      default ``"*"`` rule
    - Factories compiled once per name, so introspection happens only once
    - Nested construction descriptors inside rule arguments
    - Shared instances, including shared instances that depend on each other
    - Merged rule tables that can be cached and reloaded

Basic Usage:
    >>> from rulegraph.container import Container
    >>>
    >>> container = Container({
    ...     "zone": {"target": TimeZone, "construct_args": ["Europe/London"]},
    ...     "clock": {"target": Clock, "construct_args": ["now", {"target": "zone"}]},
    ... })
    >>> container.get("clock").zone.label
    'Europe/London'

The framework consists of several modules:
    - container: The public entry point
    - rule_set: Rule registration and lookup
    - factory: Compilation of rules into factories
    - parameters: Binding of values to constructor and method parameters
    - expander: Expansion of nested construction descriptors
    - introspection: Reflection over Python types
    - persistence: Rule files, rule table serialisation and caching
    - domain: Core domain models (Rule, Parameter, PostCall)
    - errors: Framework-specific exceptions
"""
