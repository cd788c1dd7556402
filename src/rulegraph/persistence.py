"""Loading rule sources and persisting merged rule tables.

Rule sources are YAML or JSON documents mapping names to rule mappings. A
merged rule table (as returned by ``Container.get_rules``) can be turned into
plain data with :func:`dump_rules` and back with :func:`restore_rules`; types
and callables are stored as ``{"$ref": "module.qualname"}`` references.
"""

import importlib
import json
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Union

import yaml
from loguru import logger

from rulegraph.domain import Name, Rule
from rulegraph.errors import RuleError

__all__ = ["RuleCache", "JsonFileRuleCache", "dump_rules", "restore_rules", "load_rules"]

REF_KEY = "$ref"


class RuleCache(Protocol):
    """Key-value store holding a merged rule table between process runs."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class JsonFileRuleCache:
    """A :class:`RuleCache` keeping one JSON document per key in a directory."""

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def set(self, key: str, value: Any) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        with open(self._path(key), "w", encoding="utf-8") as f:
            json.dump(value, f, indent=2)
        logger.debug("Stored {} in {}", key, self._directory)

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"


def dump_rules(table: Mapping[Name, Rule]) -> dict[str, Any]:
    """Encode a merged rule table as JSON-compatible data.

    Raises:
        RuleError: If the table references a callable that cannot be imported
            back by name, such as a lambda or a nested function.
    """
    return {
        _reference_path(name) if isinstance(name, type) else name: _encode(rule.to_mapping())
        for name, rule in table.items()
    }


def restore_rules(data: Mapping[str, Any]) -> dict[str, Rule]:
    """Decode data produced by :func:`dump_rules` into a rule table."""
    return {name: Rule.from_mapping(_decode(rule)) for name, rule in data.items()}


def load_rules(path: Union[str, Path]) -> dict[str, Any]:
    """Read a rule source from a ``.yaml``, ``.yml`` or ``.json`` file.

    Returns:
        The rule mappings keyed by name, ready for ``Container.add_rules``.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        RuleError: If the format is unsupported or the document is not a mapping.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Rule file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        if path.suffix in (".yaml", ".yml"):
            content = yaml.safe_load(f)
        elif path.suffix == ".json":
            content = json.load(f)
        else:
            raise RuleError(f"Unsupported rule file format: {path}")

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise RuleError(f"Rule file must contain a mapping: {path}")
    return _decode(content)


def _encode(value: Any) -> Any:
    if isinstance(value, type) or (callable(value) and hasattr(value, "__qualname__")):
        return {REF_KEY: _reference_path(value)}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    if isinstance(value, Mapping):
        return {
            _reference_path(key) if isinstance(key, type) else key: _encode(item)
            for key, item in value.items()
        }
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, Mapping):
        if set(value) == {REF_KEY}:
            return _import_reference(value[REF_KEY])
        return {key: _decode(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_decode(item) for item in value]
    return value


def _reference_path(value: Any) -> str:
    qualname = value.__qualname__
    if "<" in qualname:
        raise RuleError(f"{value!r} cannot be referenced by name")
    return f"{value.__module__}.{qualname}"


def _import_reference(path: str) -> Any:
    """Import the object at a dotted ``module.qualname`` path.

    Raises:
        RuleError: If no module prefix of ``path`` can be imported or the
            remaining attributes do not exist.
    """
    parts = path.split(".")
    for split in range(len(parts) - 1, 0, -1):
        try:
            found: Any = importlib.import_module(".".join(parts[:split]))
        except ImportError:
            continue
        try:
            for attribute in parts[split:]:
                found = getattr(found, attribute)
        except AttributeError as e:
            raise RuleError(f"Cannot import reference {path}") from e
        return found
    raise RuleError(f"Cannot import reference {path}")
