"""JavaScript/TypeScript import extraction using regex patterns."""

from __future__ import annotations

import re

from filedep.extractor.base import (
    BaseImportExtractor,
    ComponentRule,
    ExtractionContext,
    ImportRule,
    clean_specifier,
    is_relative,
    rule,
)

_Q = r"""['"]"""
_SPEC = r"""['"]([^'"]+)['"]"""

# Bindings: which local names come from which specifier
_DEFAULT_BINDING_RE = re.compile(r"import\s+(\w+)\s*(?:,\s*\{([^}]*)\}\s*)?from\s*" + _SPEC)
_NAMED_BINDING_RE = re.compile(r"import\s*(?:type\s+)?\{([^}]+)\}\s*from\s*" + _SPEC)

SCRIPT_RULES: tuple[ImportRule, ...] = (
    rule("default_import", "script", r"import\s+\w+\s+from\s+" + _SPEC),
    rule("named_import", "script", r"import\s*(?:type\s+)?\{[^}]*\}\s*from\s*" + _SPEC),
    rule("namespace_import", "script", r"import\s+\*\s+as\s+\w+\s+from\s+" + _SPEC),
    rule("mixed_import", "script",
         r"import\s+\w+\s*,\s*(?:\{[^}]*\}|\*\s+as\s+\w+)\s*from\s*" + _SPEC),
    # side-effect imports and every `... from '...'` form, including re-exports
    rule("from_clause", "script", r"(?:import|from)\s*" + _SPEC),
    rule("dynamic_import", "script", r"import\s*\(\s*" + _SPEC + r"\s*\)"),
    rule("require", "script", r"require\s*\(\s*" + _SPEC + r"\s*\)"),
    rule("jsx_attribute", "script",
         r"(?:src|href|path|component)=\{\s*(?:" + _SPEC
         + r"|require\(\s*" + _SPEC + r"\s*\))\s*\}",
         groups=(1, 2)),
    rule("lazy_import", "script",
         r"(?:React\.)?lazy\s*\(\s*\(\)\s*=>\s*import\s*\(\s*" + _SPEC + r"\s*\)\s*\)"),
    rule("next_dynamic", "script",
         r"dynamic\s*\(\s*\(\)\s*=>\s*import\s*\(\s*" + _SPEC + r"\s*\)"),
)

# Stylesheet references from non-stylesheet files
STYLE_REFERENCE_RULES: tuple[ImportRule, ...] = (
    rule("css_import_statement", "style_reference", r"import\s+" + _Q + r"([^'\"]+\.css)" + _Q),
    rule("css_require", "style_reference", r"require\s*\(\s*" + _Q + r"([^'\"]+\.css)" + _Q + r"\s*\)"),
    rule("css_string_literal", "style_reference", _Q + r"([^'\"]+\.css)" + _Q),
)

COMPONENT_RULES: tuple[ComponentRule, ...] = (
    ComponentRule("route_element", re.compile(r"<Route[^>]*element=\{\s*<([A-Z][A-Za-z0-9_]*)")),
    ComponentRule("route_element_ref", re.compile(r"<Route[^>]*element=\{\s*([A-Z][A-Za-z0-9_]*)\s*/?\s*\}")),
    ComponentRule("route_component", re.compile(r"<Route[^>]*component=\{\s*([A-Z][A-Za-z0-9_]*)\s*\}")),
    ComponentRule("jsx_element", re.compile(r"<([A-Z][A-Za-z0-9_]*)(?=[\s/>])")),
)

_WHITESPACE_RE = re.compile(r"\s+")


def _local_names(clause: str) -> list[str]:
    names = []
    for part in clause.split(","):
        part = part.strip()
        if part.startswith("type "):
            part = part[5:].strip()
        if " as " in part:
            part = part.split(" as ")[-1].strip()
        if part.isidentifier():
            names.append(part)
    return names


class ScriptImportExtractor(BaseImportExtractor):
    default_rules = SCRIPT_RULES + STYLE_REFERENCE_RULES

    def __init__(
        self,
        rules: list[ImportRule] | None = None,
        component_rules: list[ComponentRule] | None = None,
    ):
        super().__init__(rules)
        self.component_rules = list(COMPONENT_RULES if component_rules is None else component_rules)

    def post_process(self, ctx: ExtractionContext) -> None:
        if not self.component_rules:
            return
        ctx.bindings.update(self._bindings(ctx.content))
        if not ctx.bindings:
            return

        flat = _WHITESPACE_RE.sub(" ", ctx.content)
        for component_rule in self.component_rules:
            for m in component_rule.pattern.finditer(flat):
                specifier = ctx.bindings.get(m.group(1))
                if specifier:
                    ctx.specifiers.add(specifier)

    @staticmethod
    def _bindings(content: str) -> dict[str, str]:
        bindings: dict[str, str] = {}
        for m in _DEFAULT_BINDING_RE.finditer(content):
            spec = clean_specifier(m.group(3))
            if not is_relative(spec):
                continue
            bindings[m.group(1)] = spec
            if m.group(2):
                for name in _local_names(m.group(2)):
                    bindings[name] = spec
        for m in _NAMED_BINDING_RE.finditer(content):
            spec = clean_specifier(m.group(2))
            if not is_relative(spec):
                continue
            for name in _local_names(m.group(1)):
                bindings[name] = spec
        return bindings
