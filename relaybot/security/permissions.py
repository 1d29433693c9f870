"""
Permission levels for command authorization.

Levels form a total order:

    USER < MODERATOR < SUPERUSER

A held level satisfies a required level when it is at least as high.
"""

from enum import IntEnum


class PermissionLevel(IntEnum):
    """Authorization level of an identity. Values are the stored form."""
    USER = 0
    MODERATOR = 1
    SUPERUSER = 2

    @classmethod
    def from_value(cls, value: int) -> "PermissionLevel":
        """Map a stored integer to a level, falling back to USER."""
        try:
            return cls(value)
        except ValueError:
            return cls.USER

    def satisfies(self, required: "PermissionLevel") -> bool:
        return satisfies(self, required)

    def __str__(self) -> str:
        return self.name.lower()

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)


def satisfies(held: PermissionLevel, required: PermissionLevel) -> bool:
    """Check whether the held level is sufficient for the required one."""
    return int(held) >= int(required)
