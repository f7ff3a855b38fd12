from typing import Any, Dict, Optional

from .errors import IqraRuntimeError, undefined_variable


class Environment:
    """A lexical scope mapping names to values.

    Scopes form a chain through `parent`. A parent may be shared by any
    number of children (every closure keeps the scope it was defined in),
    so scopes are never copied.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}

    def define(self, name: str, value: Any) -> None:
        """Create or overwrite `name` in this scope, ignoring outer scopes."""
        self.values[name] = value

    def resolve(self, name: str) -> Optional['Environment']:
        """Return the nearest scope that binds `name`, or None."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env
            env = env.parent
        return None

    def has(self, name: str) -> bool:
        return self.resolve(name) is not None

    def get(self, name: str) -> Any:
        owner = self.resolve(name)
        if owner is None:
            raise IqraRuntimeError(undefined_variable(name))
        return owner.values[name]

    def set(self, name: str, value: Any) -> None:
        """Update the nearest existing binding of `name`."""
        owner = self.resolve(name)
        if owner is None:
            raise IqraRuntimeError(undefined_variable(name))
        owner.values[name] = value

    def assign(self, name: str, value: Any) -> None:
        """Assignment statement policy: update if bound anywhere, else define here."""
        owner = self.resolve(name)
        (owner or self).values[name] = value

    def child_scope(self) -> 'Environment':
        return Environment(parent=self)

    def __repr__(self) -> str:
        depth = 0
        env = self.parent
        while env is not None:
            depth += 1
            env = env.parent
        return f"<Environment depth={depth} names={sorted(self.values)}>"
