"""Expansion of argument specifications into concrete values.

Argument specifications appear in ``construct_args``, ``substitutions`` and
``post_calls``. Most of them are literals and pass through untouched, but any
mapping with a ``"target"`` key is a construction descriptor: it is replaced
by the instance it describes, built through the container so that the
target's own rule applies.

Example:
    >>> expander.expand(["now", {"target": "zone"}])
    ['now', <TimeZone Europe/London>]
"""

from typing import Any, Callable, Iterable, Mapping

from rulegraph.domain import is_descriptor

__all__ = ["SpecExpander", "Getter"]

Getter = Callable[..., Any]
"""The container's ``get(name, args, share)`` entry point."""


class SpecExpander:
    """Recursively resolve construction descriptors inside argument specifications."""

    def __init__(self, get: Getter):
        self._get = get

    def expand(self, spec: Any, share: Iterable[Any] = (), force: bool = False) -> Any:
        """Return ``spec`` with every construction descriptor replaced by its instance.

        Args:
            spec: A literal, a descriptor, or a list/tuple/mapping containing either.
            share: Shared values handed to instances built for descriptors.
            force: If True, a bare name (string or type) is itself resolved
                through the container instead of being returned as a literal.

        Raises:
            NotFoundError: If a name that has to be resolved denotes no known type.
        """
        if is_descriptor(spec):
            return self._construct(spec, share)
        if isinstance(spec, list):
            return [self.expand(value, share) for value in spec]
        if type(spec) is tuple:
            return tuple(self.expand(value, share) for value in spec)
        if isinstance(spec, Mapping):
            return {key: self.expand(value, share) for key, value in spec.items()}
        if force and isinstance(spec, (str, type)):
            return self._get(spec)
        return spec

    def _construct(self, descriptor: Mapping[str, Any], share: Iterable[Any]) -> Any:
        args = self.expand(list(descriptor.get("construct_args") or []))
        target = self._resolve_target(descriptor["target"], share)

        if _is_name(target):
            return self._get(target, [*args, *share])
        if callable(target):
            return target(*args)
        raise TypeError(f"Construction target {target!r} is neither a name nor callable")

    def _resolve_target(self, target: Any, share: Iterable[Any]) -> Any:
        """Reduce a construction target to a name or a callable."""
        if is_descriptor(target):
            return self.expand(target, share)
        if isinstance(target, (list, tuple)) and len(target) == 2 and isinstance(target[1], str):
            owner = self.expand(target[0], share, force=True)
            return getattr(owner, target[1])
        return target


def _is_name(target: Any) -> bool:
    return isinstance(target, (str, type))
