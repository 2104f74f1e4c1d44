"""
Language routing for sandbox execution.

Each supported language maps to one minimal, pinned base image and the
interpreter that reads the program from stdin.
"""

import base64
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ..core.exceptions import ConfigurationError, UnsupportedLanguageError


@dataclass(frozen=True, slots=True)
class LanguageSpec:
    """Image and interpreter for one language."""

    name: str
    image: str
    interpreter: str


BUILTIN_LANGUAGES: Mapping[str, LanguageSpec] = MappingProxyType(
    {
        "python": LanguageSpec(name="python", image="python:3.12-slim", interpreter="python3"),
        "bash": LanguageSpec(name="bash", image="alpine:3.20", interpreter="sh"),
        "javascript": LanguageSpec(name="javascript", image="node:20-slim", interpreter="node"),
    }
)


class LanguageCatalog:
    """Read-only table of supported languages.

    Operators may swap the image for a language; the set of languages and
    their interpreters cannot change.
    """

    def __init__(self, image_overrides: Mapping[str, str] | None = None):
        table = dict(BUILTIN_LANGUAGES)
        for language, image in (image_overrides or {}).items():
            if language not in table:
                raise ConfigurationError(
                    f"Cannot override image for unknown language '{language}'. "
                    f"Supported: {', '.join(sorted(table))}"
                )
            image = str(image or "").strip()
            if not image:
                raise ConfigurationError(f"Image override for '{language}' is empty")
            base = table[language]
            table[language] = LanguageSpec(name=base.name, image=image, interpreter=base.interpreter)
        self._table: Mapping[str, LanguageSpec] = MappingProxyType(table)

    def resolve(self, language: str) -> LanguageSpec:
        """Return the spec for ``language`` or raise UnsupportedLanguageError."""
        spec = self._table.get(language) if isinstance(language, str) else None
        if spec is None:
            raise UnsupportedLanguageError(str(language), supported=self.languages())
        return spec

    def languages(self) -> list[str]:
        return sorted(self._table)

    def __contains__(self, language: object) -> bool:
        return language in self._table


_DEFAULT_CATALOG = LanguageCatalog()


def build_container_command(
    language: str, code: str, catalog: LanguageCatalog | None = None
) -> list[str]:
    """
    Build the container argv for running ``code``.

    The source never appears in the shell line: only its base64 encoding is
    embedded, so the command shape is fixed whatever the payload contains.

    Args:
        language: Catalog identifier
        code: Program source text
        catalog: Catalog to resolve against (built-in table by default)

    Returns:
        ``["sh", "-c", "echo '<b64>' | base64 -d | <interpreter>"]``
    """
    spec = (catalog or _DEFAULT_CATALOG).resolve(language)
    encoded = base64.b64encode(code.encode("utf-8")).decode("ascii")
    return ["sh", "-c", f"echo '{encoded}' | base64 -d | {spec.interpreter}"]
