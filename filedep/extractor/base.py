"""Rule types and the abstract import extractor."""

from __future__ import annotations

import abc
import logging
import re
from dataclasses import dataclass, field
from typing import Iterator

logger = logging.getLogger(__name__)

RELATIVE_MARKERS = (".", "/")


@dataclass(frozen=True)
class ImportRule:
    """A named regex whose capture groups yield raw specifiers."""
    name: str
    category: str
    pattern: re.Pattern
    groups: tuple[int, ...] = (1,)

    def find(self, content: str) -> Iterator[str]:
        for m in self.pattern.finditer(content):
            for idx in self.groups:
                value = m.group(idx)
                if value:
                    yield value


@dataclass(frozen=True)
class ComponentRule:
    """A regex whose group 1 is a component name used in JSX markup.

    Used names are mapped back to the specifier they were imported from.
    """
    name: str
    pattern: re.Pattern


@dataclass
class ExtractionContext:
    content: str
    specifiers: set[str] = field(default_factory=set)
    bindings: dict[str, str] = field(default_factory=dict)  # local name -> specifier


def rule(name: str, category: str, pattern: str, groups: tuple[int, ...] = (1,), flags: int = 0) -> ImportRule:
    return ImportRule(name=name, category=category, pattern=re.compile(pattern, flags), groups=groups)


def is_relative(specifier: str) -> bool:
    """True for specifiers that point into the workspace (./x, ../x, /x)."""
    if specifier.startswith("//"):
        return False  # protocol-relative URL
    return specifier.startswith(RELATIVE_MARKERS)


def clean_specifier(specifier: str) -> str:
    """Strip query strings and fragments (./font.woff?v=2#iefix)."""
    for sep in ("?", "#"):
        idx = specifier.find(sep)
        if idx > 0:
            specifier = specifier[:idx]
    return specifier.strip()


class BaseImportExtractor(abc.ABC):
    """Base class for per-file-class import extractors."""

    default_rules: tuple[ImportRule, ...] = ()

    def __init__(self, rules: list[ImportRule] | None = None):
        self.rules: list[ImportRule] = list(rules if rules is not None else self.default_rules)

    def add_rule(self, new_rule: ImportRule) -> None:
        self.remove_rule(new_rule.name)
        self.rules.append(new_rule)

    def remove_rule(self, name: str) -> bool:
        before = len(self.rules)
        self.rules = [r for r in self.rules if r.name != name]
        return len(self.rules) != before

    def rule_names(self) -> list[str]:
        return [r.name for r in self.rules]

    def extract(self, content: str) -> set[str]:
        """Return the relative specifiers referenced by content.

        Never raises: a failing rule is logged and the partial result kept.
        """
        if not isinstance(content, str) or not content:
            return set()
        ctx = ExtractionContext(content=content)
        for r in self.rules:
            try:
                for value in r.find(content):
                    self._accept(ctx, value)
            except Exception:
                logger.exception("Import rule %s failed", r.name)
        try:
            self.post_process(ctx)
        except Exception:
            logger.exception("%s post-processing failed", type(self).__name__)
        return ctx.specifiers

    def post_process(self, ctx: ExtractionContext) -> None:
        """Hook for extractors that need more than independent regex rules."""

    @staticmethod
    def _accept(ctx: ExtractionContext, value: str) -> None:
        value = clean_specifier(value)
        if value and is_relative(value):
            ctx.specifiers.add(value)
