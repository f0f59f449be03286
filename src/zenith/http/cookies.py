"""Cookie parsing (request side) and Set-Cookie serialisation (response side)."""

from dataclasses import dataclass


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header into a name-value dict.

    Malformed pairs (no ``=``) are skipped.
    """
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        name, sep, value = pair.strip().partition("=")
        if sep and name:
            cookies[name.strip()] = value.strip()
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a Response."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    def to_header_value(self) -> str:
        parts = [f"{self.name}={self.value}"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        if self.samesite:
            parts.append(f"SameSite={self.samesite.capitalize()}")
        return "; ".join(parts)
