"""Route-level access policies.

A policy is an ordered list of rules. The first rule whose method and path
pattern match a request decides what the request needs: nothing, any
authenticated identity, or the ADMIN role. The REST API and the browser UI
each get their own policy so stateless and session handling stay apart.
"""

import enum
import re
from dataclasses import dataclass, field
from functools import cached_property

from identity_manager.models.role import RoleName


class Access(str, enum.Enum):
    """What a route requires from the caller."""

    PERMIT_ALL = "permit_all"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


class Decision(str, enum.Enum):
    """Outcome of checking a caller against a route."""

    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Principal:
    """Authenticated identity with the authorities derived from its roles."""

    user_id: int
    email: str
    authorities: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_roles(cls, user_id: int, email: str, role_names: set[str] | frozenset[str]) -> "Principal":
        authorities = frozenset(f"ROLE_{name}" for name in role_names)
        return cls(user_id=user_id, email=email, authorities=authorities)

    def has_role(self, role_name: RoleName | str) -> bool:
        name = role_name.value if isinstance(role_name, RoleName) else role_name.upper()
        return f"ROLE_{name}" in self.authorities

    @property
    def is_admin(self) -> bool:
        return self.has_role(RoleName.ADMIN)


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Turn a path glob into a regex.

    ``*`` matches one path segment, ``**`` matches the rest of the path
    (including nothing).
    """
    parts = []
    for segment in pattern.strip("/").split("/"):
        if segment == "**":
            parts.append("(?:/.*)?")
        elif segment == "":
            continue
        else:
            parts.append("/" + re.escape(segment).replace(r"\*", "[^/]+"))
    return re.compile("^" + "".join(parts) + "/?$")


@dataclass(frozen=True)
class RouteRule:
    """Path pattern, optional method filter and the access it grants."""

    pattern: str
    access: Access
    methods: frozenset[str] | None = None

    @cached_property
    def regex(self) -> re.Pattern[str]:
        return compile_pattern(self.pattern)

    def matches(self, method: str, path: str) -> bool:
        if self.methods is not None and method.upper() not in self.methods:
            return False
        return self.regex.match(path) is not None


@dataclass(frozen=True)
class SecurityPolicy:
    """Ordered rules, evaluated first match wins."""

    name: str
    rules: tuple[RouteRule, ...]
    default: Access = Access.AUTHENTICATED

    def required_access(self, method: str, path: str) -> Access:
        for rule in self.rules:
            if rule.matches(method, path):
                return rule.access
        return self.default

    def decide(self, principal: Principal | None, method: str, path: str) -> Decision:
        access = self.required_access(method, path)
        if access is Access.PERMIT_ALL:
            return Decision.ALLOW
        if principal is None:
            return Decision.UNAUTHENTICATED
        if access is Access.ADMIN and not principal.is_admin:
            return Decision.FORBIDDEN
        return Decision.ALLOW


def _rule(pattern: str, access: Access, *methods: str) -> RouteRule:
    return RouteRule(pattern, access, frozenset(methods) if methods else None)


API_POLICY = SecurityPolicy(
    name="api",
    rules=(
        _rule("/api/users", Access.PERMIT_ALL, "POST"),
        _rule("/api/auth/login", Access.PERMIT_ALL, "POST"),
        _rule("/api/users/*/avatar", Access.PERMIT_ALL, "GET"),
        _rule("/api/**", Access.AUTHENTICATED),
    ),
)

WEB_POLICY = SecurityPolicy(
    name="web",
    rules=(
        _rule("/login", Access.PERMIT_ALL),
        _rule("/logout", Access.PERMIT_ALL),
        _rule("/403", Access.PERMIT_ALL),
        _rule("/health", Access.PERMIT_ALL),
        _rule("/static/**", Access.PERMIT_ALL),
        _rule("/admin/**", Access.ADMIN),
        _rule("/**", Access.AUTHENTICATED),
    ),
)
