"""Combine located source text, directives and settings into one occurrence."""

from dataclasses import replace

from .directives import parse_fence_line
from .model import AnnotationDirectives, CodeBlockOccurrence, LocatedBlock
from .settings import Settings

LANG_PREFIX = "language-"


def language_from_classes(class_attr: str | None) -> str | None:
    """First ``language-<name>`` token of a class attribute, lower-cased."""
    for token in (class_attr or "").split():
        if token.startswith(LANG_PREFIX) and len(token) > len(LANG_PREFIX):
            return token[len(LANG_PREFIX):].lower()
    return None


def is_candidate(language: str | None, settings: Settings) -> bool:
    if not language:
        return False
    return language.lower() not in {lang.lower() for lang in settings.exclude_langs}


def text_line_count(code_text: str) -> int:
    # rendered code text ends with a newline, hence the -1
    return len(code_text.split("\n")) - 1


def substitute_spaces(title: str, token: str | None) -> str:
    if not token:
        return title
    return title.replace(token, " ")


def assemble_occurrence(
    language: str,
    located: LocatedBlock,
    code_text: str,
    settings: Settings,
) -> CodeBlockOccurrence:
    """
    Build the occurrence for one located block.

    The line count comes from the structural extent when its end is known,
    otherwise from the rendered code text.
    """
    directives = parse_fence_line(located.fence_line)
    if directives is None:
        directives = AnnotationDirectives(language_tag=language)

    title = substitute_spaces(directives.title, settings.substitution_token_for_space)
    if title != directives.title:
        directives = replace(directives, title=title)

    line_count = located.extent.content_line_count
    if line_count is None:
        line_count = text_line_count(code_text)

    return CodeBlockOccurrence(
        language_name=language,
        line_count=line_count,
        directives=directives,
        source_extent=located.extent,
    )
