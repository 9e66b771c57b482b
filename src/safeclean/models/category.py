"""Project ecosystem categories."""

from __future__ import annotations

from enum import Enum

_DISPLAY_NAMES = {
    "rust": "Rust",
    "node": "Node.js",
    "python": "Python",
    "java": "Java (Maven)",
    "gradle": "Gradle",
    "dotnet": ".NET",
    "next": "Next.js",
    "nuxt": "Nuxt.js",
}


class Category(Enum):
    """Ecosystem a disposable directory belongs to.

    Member definition order is the display order used everywhere
    categories are grouped or listed.
    """

    RUST = "rust"
    NODE = "node"
    PYTHON = "python"
    JAVA = "java"
    GRADLE = "gradle"
    DOTNET = "dotnet"
    NEXT = "next"
    NUXT = "nuxt"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self.value]

    @classmethod
    def ordered(cls) -> tuple[Category, ...]:
        """All categories in display order."""
        return tuple(cls)

    @classmethod
    def from_id(cls, category_id: str) -> Category:
        """Resolve a category tag such as ``'node'``."""
        try:
            return cls(category_id.lower())
        except ValueError:
            raise ValueError(f"Unknown category '{category_id}'") from None
