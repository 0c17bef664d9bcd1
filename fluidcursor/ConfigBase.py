"""Config dataclass base: range hints, fields locked after construction, change watchers."""

import threading
import warnings
from dataclasses import dataclass, field, fields, MISSING
from typing import Any, Callable, TypeVar

T = TypeVar('T')


def config_field(
    default: T = MISSING,
    *,
    default_factory: Any = MISSING,
    description: str = "",
    min: float | int | None = None,
    max: float | int | None = None,
    fixed: bool = False,
) -> T:
    """Dataclass field carrying config metadata.

    Args:
        default: Default value
        default_factory: Factory for tuple or mutable defaults
        description: Help text
        min: Lower bound, values outside warn at construction
        max: Upper bound, values outside warn at construction
        fixed: Only settable through __init__
    """
    metadata: dict[str, Any] = {"description": description, "fixed": fixed}
    if min is not None:
        metadata["min"] = min
    if max is not None:
        metadata["max"] = max
    return field(default=default, default_factory=default_factory, metadata=metadata)  # type: ignore[return-value]


@dataclass
class ConfigBase:
    """Subclass as a @dataclass and declare fields with config_field().

    Setting a fixed field after construction, or any undeclared name,
    raises AttributeError. Watchers run after every accepted change.
    """

    def __post_init__(self) -> None:
        object.__setattr__(self, '_watchers', [])
        object.__setattr__(self, '_lock', threading.Lock())

        for f in fields(self):
            low, high = f.metadata.get('min'), f.metadata.get('max')
            if low is None or high is None:
                continue
            value = getattr(self, f.name)
            if not low <= value <= high:
                warnings.warn(
                    f"{type(self).__name__}.{f.name} = {value} is outside [{low}, {high}]",
                    UserWarning,
                    stacklevel=3
                )

        object.__setattr__(self, '_fixed', frozenset(f.name for f in fields(self) if f.metadata.get('fixed')))

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in {f.name for f in fields(self)}:
            raise AttributeError(f"{type(self).__name__} has no config field '{name}'")

        fixed: frozenset[str] | None = self.__dict__.get('_fixed')
        if fixed is None:
            # still inside __init__
            object.__setattr__(self, name, value)
            return
        if name in fixed:
            raise AttributeError(f"{type(self).__name__}.{name} is fixed, create a new config instead")

        with self._lock:  # type: ignore
            object.__setattr__(self, name, value)
            watchers = [(attribute, callback) for attribute, callback in self._watchers if attribute in (None, name)]  # type: ignore

        for attribute, callback in watchers:
            if attribute is None:
                callback()
            else:
                callback(value)

    def watch(self, callback: Callable, attribute: str | None = None) -> Callable[[], None]:
        """Call callback(value) when attribute changes, or callback() on any change.

        Returns:
            Function that removes the watcher.

        Raises:
            AttributeError: If attribute is not a field
        """
        if attribute is not None and attribute not in {f.name for f in fields(self)}:
            raise AttributeError(f"{type(self).__name__} has no config field '{attribute}'")

        entry = (attribute, callback)
        with self._lock:  # type: ignore
            self._watchers.append(entry)  # type: ignore

        def unwatch() -> None:
            with self._lock:  # type: ignore
                if entry in self._watchers:  # type: ignore
                    self._watchers.remove(entry)  # type: ignore
        return unwatch
