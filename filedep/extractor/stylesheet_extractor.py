"""Stylesheet import extraction (@import and url())."""

from __future__ import annotations

from filedep.extractor.base import BaseImportExtractor, ImportRule, rule

_URL_ARG = r"""\(\s*['"]?([^'")\s]+)['"]?\s*\)"""

STYLESHEET_RULES: tuple[ImportRule, ...] = (
    rule("at_import", "stylesheet", r"""@import\s+['"]([^'"]+)['"]"""),
    rule("at_import_url", "stylesheet", r"@import\s+url\s*" + _URL_ARG),
    rule("url", "stylesheet", r"url\s*" + _URL_ARG),
)


class StylesheetImportExtractor(BaseImportExtractor):
    default_rules = STYLESHEET_RULES
