"""HTML resource reference extraction."""

from __future__ import annotations

import re

from filedep.extractor.base import BaseImportExtractor, ImportRule, rule
from filedep.extractor.script_extractor import (
    SCRIPT_RULES,
    STYLE_REFERENCE_RULES,
    ScriptImportExtractor,
)
from filedep.extractor.stylesheet_extractor import STYLESHEET_RULES

MARKUP_RULES: tuple[ImportRule, ...] = (
    rule("link_href", "markup", r"""<link[^>]+href=["']([^"']+)["']""", flags=re.IGNORECASE),
    rule("script_src", "markup", r"""<script[^>]+src=["']([^"']+)["']""", flags=re.IGNORECASE),
    rule("img_src", "markup", r"""<img[^>]+src=["']([^"']+)["']""", flags=re.IGNORECASE),
)


class MarkupImportExtractor(BaseImportExtractor):
    default_rules = MARKUP_RULES + STYLE_REFERENCE_RULES


class ComponentFileExtractor(ScriptImportExtractor):
    """Vue/Svelte single-file components: script, style and markup in one file."""
    default_rules = SCRIPT_RULES + STYLE_REFERENCE_RULES + STYLESHEET_RULES + MARKUP_RULES
