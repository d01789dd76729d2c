"""Capability entity."""

from enum import Enum


class Capability(Enum):
    """Domain capability that can answer a message.

    GENERAL is the default arm: anything that cannot be mapped to a
    concrete capability is handled as a general query.
    """

    CONTENT = "content"
    CRM = "crm"
    ISSUES = "issues"
    GENERAL = "general"

    @classmethod
    def parse(cls, value: object) -> "Capability":
        """Map a loosely-typed value to a Capability.

        Args:
            value: Capability name (case-insensitive), legacy alias or
                Capability instance.

        Returns:
            Matching Capability, or GENERAL when the value is unknown.
        """
        if isinstance(value, Capability):
            return value
        if not isinstance(value, str):
            return cls.GENERAL

        name = value.strip().lower()
        if name in _ALIASES:
            return _ALIASES[name]
        try:
            return cls(name)
        except ValueError:
            return cls.GENERAL

    @property
    def description(self) -> str:
        """Short human-readable description of what the capability does."""
        return _DESCRIPTIONS[self]


_ALIASES: dict[str, Capability] = {
    "hubspot": Capability.CRM,
    "linear": Capability.ISSUES,
}

_DESCRIPTIONS: dict[Capability, str] = {
    Capability.CONTENT: "Create or edit content (LinkedIn posts, articles)",
    Capability.CRM: "Manage CRM (contacts, deals, tasks)",
    Capability.ISSUES: "Track issues (tickets, projects, sprints)",
    Capability.GENERAL: "General questions and help",
}
