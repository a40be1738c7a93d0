"""Registry of channel patterns that require authorization.

Patterns are path-style, ``/``-separated:

    users/:id            binds one segment:          users/42  -> {"id": "42"}
    chats/:id/messages   placeholders anywhere:      chats/7/messages
    orgs/:org/:team?     optional trailing segment:  orgs/acme, orgs/acme/ops
    files/*              trailing wildcard:          files/a/b -> {"*": "a/b"}
    announcements        literal, matches only itself

Leading and trailing slashes are ignored on both sides. Each pattern is
compiled to an anchored regular expression once, at registration.

A channel that matches no registered pattern is public: security is opt-in.
"""

import re
from dataclasses import dataclass, field

from transmit.core.errors import InvalidChannelPatternError

_PARAM_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_WILDCARD_GROUP = "_wildcard"
WILDCARD_PARAM = "*"


@dataclass(frozen=True, slots=True)
class ChannelMatch:
    """Result of matching a concrete channel against a secure pattern.

    Attributes:
        pattern: Registered pattern, exactly as passed to ``add``.
        params: Values bound by the pattern's placeholders.
    """

    pattern: str
    params: dict[str, str] = field(default_factory=dict)


def compile_channel_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a channel pattern to an anchored regular expression.

    Raises:
        InvalidChannelPatternError: Empty pattern, bad placeholder name,
            duplicate placeholder, or ``*`` / optional placeholder that is
            not the last segment.
    """
    segments = pattern.strip("/").split("/")
    if segments == [""]:
        raise InvalidChannelPatternError(pattern, "pattern is empty")

    seen: set[str] = set()
    parts: list[str] = []
    last = len(segments) - 1
    for index, segment in enumerate(segments):
        sep = "/" if index else ""
        if segment == WILDCARD_PARAM:
            if index != last:
                raise InvalidChannelPatternError(pattern, "'*' must be the last segment")
            parts.append(f"{re.escape(sep)}(?P<{_WILDCARD_GROUP}>.+)")
        elif segment.startswith(":"):
            name = segment[1:]
            optional = name.endswith("?")
            if optional:
                name = name[:-1]
                if index != last:
                    raise InvalidChannelPatternError(
                        pattern, f"optional ':{name}?' must be the last segment"
                    )
            if not _PARAM_NAME.fullmatch(name) or name == _WILDCARD_GROUP:
                raise InvalidChannelPatternError(pattern, f"invalid placeholder '{segment}'")
            if name in seen:
                raise InvalidChannelPatternError(pattern, f"duplicate placeholder ':{name}'")
            seen.add(name)
            group = f"{re.escape(sep)}(?P<{name}>[^/]+)"
            parts.append(f"(?:{group})?" if optional else group)
        elif not segment:
            raise InvalidChannelPatternError(pattern, "empty segment")
        else:
            parts.append(re.escape(sep + segment))

    return re.compile("".join(parts))


class SecureChannelStore:
    """Secure channel patterns, matched in registration order.

    Only names are stored here; authorization callbacks live in the
    coordinator, keyed by the pattern string.
    """

    def __init__(self) -> None:
        # dict preserves insertion order: first registered wins
        self._patterns: dict[str, re.Pattern[str]] = {}

    def add(self, pattern: str) -> None:
        """Register a pattern. Re-registering keeps its original position.

        Raises:
            InvalidChannelPatternError: If the pattern cannot be compiled.
        """
        if pattern in self._patterns:
            return
        self._patterns[pattern] = compile_channel_pattern(pattern)

    def match(self, channel: str) -> ChannelMatch | None:
        """Find the first registered pattern matching a concrete channel.

        Args:
            channel: Concrete channel name (e.g. ``users/42``).

        Returns:
            ChannelMatch with extracted params, or None when the channel is
            public (matches no secure pattern).
        """
        name = channel.strip("/")
        for pattern, regex in self._patterns.items():
            found = regex.fullmatch(name)
            if found is None:
                continue
            params = {
                (WILDCARD_PARAM if key == _WILDCARD_GROUP else key): value
                for key, value in found.groupdict().items()
                if value is not None
            }
            return ChannelMatch(pattern=pattern, params=params)
        return None
