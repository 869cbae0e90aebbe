"""Per-scenario state shared between step handlers"""
from typing import Any, Dict, Iterator, Optional


class ScenarioContext:
    """Key/value store owned by one scenario run; attribute and item access both work"""

    def __init__(self, **initial: Any):
        object.__setattr__(self, '_data', {})
        object.__setattr__(self, 'scenario', None)
        object.__setattr__(self, 'active_tags', frozenset())
        self._data.update(initial)

    def reset(self, scenario: Optional[Any] = None, active_tags: frozenset = frozenset()) -> None:
        """Forget all stored values before a new scenario starts"""
        self._data.clear()
        object.__setattr__(self, 'scenario', scenario)
        object.__setattr__(self, 'active_tags', active_tags)

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"Context has no value '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name in ('scenario', 'active_tags'):
            object.__setattr__(self, name, value)
        else:
            self._data[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self._data[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data)
