"""Registry of disposable directory names and their project validators."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from safeclean.models.category import Category

log = logging.getLogger(__name__)

Validator = Callable[[Path], bool]


@dataclass(frozen=True)
class MatchRule:
    """A directory basename that is disposable inside a given kind of project."""

    basename: str
    category: Category
    validate: Validator
    marker: str = ""

    def matches(self, path: Path) -> bool:
        """Whether *path* is named like this rule and passes its validator."""
        return path.name == self.basename and self.validate(path)


# ── validators ──────────────────────────────────────────────────────────


def has_sibling(path: Path, filename: str) -> bool:
    """Check that a file named *filename* sits next to *path*.

    ``os.path.exists`` reports unreadable parents as missing.
    """
    return os.path.exists(path.parent / filename)


def has_sibling_matching(path: Path, *, prefix: str = "", suffix: str = "") -> bool:
    """Check the parent directory for any entry with the given name prefix/suffix.

    An unreadable parent never matches.
    """
    try:
        with os.scandir(path.parent) as it:
            for entry in it:
                if entry.name.startswith(prefix) and entry.name.endswith(suffix):
                    return True
    except OSError:
        log.debug("Cannot read parent of %s", path)
    return False


def always_valid(path: Path) -> bool:
    return True


def validate_rust(path: Path) -> bool:
    return has_sibling(path, "Cargo.toml")


def validate_node(path: Path) -> bool:
    return has_sibling(path, "package.json")


def validate_maven(path: Path) -> bool:
    return has_sibling(path, "pom.xml")


def validate_gradle(path: Path) -> bool:
    return has_sibling(path, "build.gradle") or has_sibling(path, "build.gradle.kts")


def validate_dotnet(path: Path) -> bool:
    return any(
        has_sibling_matching(path, suffix=ext) for ext in (".csproj", ".fsproj", ".sln")
    )


def validate_nextjs(path: Path) -> bool:
    return has_sibling_matching(path, prefix="next.config")


def validate_nuxtjs(path: Path) -> bool:
    return has_sibling_matching(path, prefix="nuxt.config")


# ── rule table ──────────────────────────────────────────────────────────

_PYTHON_DIRS = (".venv", "venv", "__pycache__", ".pytest_cache", ".mypy_cache", ".ruff_cache", ".tox")
_GRADLE_MARKER = "build.gradle or build.gradle.kts"
_DOTNET_MARKER = "*.csproj, *.fsproj or *.sln"

# Order matters only for shared basenames: the first matching rule wins.
RULES: tuple[MatchRule, ...] = (
    MatchRule("target", Category.RUST, validate_rust, "Cargo.toml"),
    MatchRule("node_modules", Category.NODE, validate_node, "package.json"),
    *(MatchRule(name, Category.PYTHON, always_valid) for name in _PYTHON_DIRS),
    MatchRule("target", Category.JAVA, validate_maven, "pom.xml"),
    MatchRule("build", Category.GRADLE, validate_gradle, _GRADLE_MARKER),
    MatchRule(".gradle", Category.GRADLE, validate_gradle, _GRADLE_MARKER),
    MatchRule("bin", Category.DOTNET, validate_dotnet, _DOTNET_MARKER),
    MatchRule("obj", Category.DOTNET, validate_dotnet, _DOTNET_MARKER),
    MatchRule(".next", Category.NEXT, validate_nextjs, "next.config.*"),
    MatchRule(".nuxt", Category.NUXT, validate_nuxtjs, "nuxt.config.*"),
)


def rules_for(categories: Iterable[Category] | None = None) -> list[MatchRule]:
    """Return the rules of the enabled categories, in table order.

    ``None`` or an empty collection enables every category.
    """
    enabled = set(categories or ())
    if not enabled:
        return list(RULES)
    return [rule for rule in RULES if rule.category in enabled]


def rules_by_category() -> dict[Category, list[MatchRule]]:
    """Group the rule table by category, in category display order."""
    grouped: dict[Category, list[MatchRule]] = {category: [] for category in Category.ordered()}
    for rule in RULES:
        grouped[rule.category].append(rule)
    return {category: rules for category, rules in grouped.items() if rules}


def first_match(path: Path, rules: Iterable[MatchRule]) -> MatchRule | None:
    """Return the first rule that accepts *path*, or None."""
    for rule in rules:
        if rule.matches(path):
            return rule
    return None
