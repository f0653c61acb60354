from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a verified bearer token.

    user_id: token subject (learner or instructor id)
    roles:   platform roles (student, instructor, admin)
    name:    display name when the identity service supplies one
    """

    user_id: str
    roles: frozenset[str]
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.user_id

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)

    def is_platform_admin(self) -> bool:
        return "admin" in self.roles
