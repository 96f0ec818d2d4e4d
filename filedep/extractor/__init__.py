"""Import extractor registry and dispatcher."""

from __future__ import annotations

from filedep.models import FileClass, file_class_for
from filedep.extractor.base import BaseImportExtractor, ComponentRule, ImportRule, is_relative, rule
from filedep.extractor.markup_extractor import ComponentFileExtractor, MarkupImportExtractor
from filedep.extractor.script_extractor import ScriptImportExtractor
from filedep.extractor.stylesheet_extractor import StylesheetImportExtractor


def default_extractors() -> dict[FileClass, BaseImportExtractor]:
    return {
        FileClass.SCRIPT: ScriptImportExtractor(),
        FileClass.STYLESHEET: StylesheetImportExtractor(),
        FileClass.MARKUP: MarkupImportExtractor(),
        FileClass.MARKUP_SCRIPT: ComponentFileExtractor(),
    }


class ImportExtractor:
    """Dispatch file content to the extractor for its file class."""

    def __init__(self, extractors: dict[FileClass, BaseImportExtractor] | None = None):
        self.extractors = extractors if extractors is not None else default_extractors()

    def extract(self, content: str, file_class: FileClass | None) -> set[str]:
        if file_class is None:
            return set()
        extractor = self.extractors.get(file_class)
        if extractor is None:
            return set()
        return extractor.extract(content)

    def extract_for_extension(self, content: str, extension: str) -> set[str]:
        return self.extract(content, file_class_for(extension))


_default = ImportExtractor()


def extract_imports(content: str, file_class: FileClass | str | None) -> set[str]:
    """Return the raw relative specifiers referenced by content.

    Args:
        content: Source text of one file.
        file_class: A FileClass, or a dotted extension such as ".tsx".
    """
    if isinstance(file_class, str):
        file_class = file_class_for(file_class)
    return _default.extract(content, file_class)


__all__ = [
    "BaseImportExtractor",
    "ComponentRule",
    "ImportRule",
    "ImportExtractor",
    "ScriptImportExtractor",
    "StylesheetImportExtractor",
    "MarkupImportExtractor",
    "ComponentFileExtractor",
    "default_extractors",
    "extract_imports",
    "is_relative",
    "rule",
]
