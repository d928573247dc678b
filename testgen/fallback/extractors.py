"""Heuristic per-language function signature extraction."""

from __future__ import annotations

import re
from dataclasses import dataclass
from re import Match, Pattern
from typing import Callable, Dict, List, Optional, Sequence

from ..models import Signature

MAX_SIGNATURES_PER_FILE = 5

SignatureExtractor = Callable[[str], List[Signature]]
ExportRule = Callable[[Match[str], str], bool]

_CONTROL_KEYWORDS = frozenset(
    {"if", "for", "while", "switch", "catch", "return", "new", "else", "throw", "sizeof", "do", "case"}
)


@dataclass(frozen=True)
class PatternExtractor:
    """Runs a set of regexes with a `name` group and orders hits by position."""

    patterns: Sequence[Pattern[str]]
    exported: ExportRule
    skip: Callable[[str], bool] = lambda name: False
    post_process: Optional[Callable[[str, List[Signature]], List[Signature]]] = None

    def __call__(self, content: str) -> List[Signature]:
        hits: List[tuple[int, str, bool]] = []
        for pattern in self.patterns:
            for match in pattern.finditer(content):
                name = match.group("name")
                if "::" in name:
                    name = name.rsplit("::", 1)[-1]
                rtype = match.groupdict().get("rtype")
                if not name or name in _CONTROL_KEYWORDS or (rtype and rtype in _CONTROL_KEYWORDS):
                    continue
                if self.skip(name):
                    continue
                hits.append((match.start(), name, self.exported(match, content)))

        ordered: Dict[str, bool] = {}
        for _, name, is_exported in sorted(hits, key=lambda hit: hit[0]):
            ordered[name] = ordered.get(name, False) or is_exported
        signatures = [Signature(name=name, is_exported=flag) for name, flag in ordered.items()]
        if self.post_process is not None:
            signatures = self.post_process(content, signatures)
        return signatures


def _group_present(group: str) -> ExportRule:
    return lambda match, _content: bool(match.groupdict().get(group))


def _modifier_present(*modifiers: str) -> ExportRule:
    def rule(match: Match[str], _content: str) -> bool:
        mods = (match.groupdict().get("mods") or "").split()
        return any(modifier in mods for modifier in modifiers)

    return rule


def _modifier_absent(*modifiers: str) -> ExportRule:
    def rule(match: Match[str], _content: str) -> bool:
        mods = (match.groupdict().get("mods") or "").split()
        return not any(modifier.split("[")[0] in modifiers for modifier in mods)

    return rule


def _public_name(match: Match[str], _content: str) -> bool:
    return not match.group("name").startswith("_")


def _capitalised_name(match: Match[str], _content: str) -> bool:
    return match.group("name")[:1].isupper()


_JS_IDENT = r"[A-Za-z_$][\w$]*"
_MODULE_EXPORTS_OBJECT = re.compile(r"module\.exports\s*=\s*\{([^}]*)\}")
_MODULE_EXPORTS_SINGLE = re.compile(rf"module\.exports\s*=\s*({_JS_IDENT})\s*;?\s*$", re.MULTILINE)
_EXPORT_LIST = re.compile(r"\bexport\s*\{([^}]*)\}")


def _commonjs_exports(content: str, signatures: List[Signature]) -> List[Signature]:
    names: set[str] = set()
    for pattern in (_MODULE_EXPORTS_OBJECT, _EXPORT_LIST):
        for match in pattern.finditer(content):
            for entry in match.group(1).split(","):
                entry = entry.strip()
                if not entry:
                    continue
                # `{ alias: impl }` and `{ impl as alias }` both export impl.
                if ":" in entry:
                    local = entry.split(":", 1)[1]
                else:
                    local = re.split(r"\s+as\s+", entry)[0]
                names.add(local.strip())
    for match in _MODULE_EXPORTS_SINGLE.finditer(content):
        names.add(match.group(1))
    return [
        Signature(name=sig.name, is_exported=sig.is_exported or sig.name in names) for sig in signatures
    ]


_JS_PATTERNS = (
    re.compile(
        rf"(?P<export>\bexport\s+(?:default\s+)?)?(?:async\s+)?\bfunction\b\s*\*?\s*(?P<name>{_JS_IDENT})\s*(?:<[^>]*>)?\s*\("
    ),
    re.compile(
        rf"(?P<export>\bexport\s+)?\b(?:const|let|var)\s+(?P<name>{_JS_IDENT})\s*(?::[^=\n]+)?=\s*(?:async\s+)?"
        rf"(?:\bfunction\b|\([^)]*\)\s*(?::[^=\n]+)?=>|{_JS_IDENT}\s*=>)"
    ),
    re.compile(rf"^[ \t]*(?P<name>{_JS_IDENT})\s*:\s*(?:async\s+)?\bfunction\b", re.MULTILINE),
    re.compile(rf"(?P<export>\b(?:module\.)?exports)\.(?P<name>{_JS_IDENT})\s*=\s*(?:async\s+)?(?:\bfunction\b|\()"),
)

_JAVASCRIPT = PatternExtractor(
    patterns=_JS_PATTERNS,
    exported=_group_present("export"),
    post_process=_commonjs_exports,
)

_PYTHON = PatternExtractor(
    patterns=(re.compile(r"^[ \t]*(?:async[ \t]+)?def[ \t]+(?P<name>[A-Za-z_]\w*)[ \t]*\(", re.MULTILINE),),
    exported=_public_name,
    skip=lambda name: name.startswith("__"),
)

_JAVA = PatternExtractor(
    patterns=(
        re.compile(
            r"^[ \t]*(?P<mods>(?:(?:public|protected|private|static|final|abstract|synchronized|default)[ \t]+)*)"
            r"(?:<[^>\n]+>[ \t]+)?(?P<rtype>[\w.\[\]]+(?:<[^>\n]*>)?(?:\[\])*)[ \t]+(?P<name>[A-Za-z_]\w*)[ \t]*"
            r"\([^)]*\)[^;{\n]*\{",
            re.MULTILINE,
        ),
    ),
    exported=_modifier_present("public"),
)

_CSHARP = PatternExtractor(
    patterns=(
        re.compile(
            r"^[ \t]*(?P<mods>(?:(?:public|protected|private|internal|static|virtual|override|async|sealed|abstract)[ \t]+)*)"
            r"(?P<rtype>[\w.\[\]]+(?:<[^>\n]*>)?\??)[ \t]+(?P<name>[A-Za-z_]\w*)[ \t]*(?:<[^>\n]*>)?"
            r"\([^)]*\)[^;{\n]*(?:\{|=>)",
            re.MULTILINE,
        ),
    ),
    exported=_modifier_present("public"),
)

_GO = PatternExtractor(
    patterns=(
        re.compile(r"^func[ \t]+(?:\([^)]*\)[ \t]*)?(?P<name>[A-Za-z_]\w*)[ \t]*(?:\[[^\]]*\])?\(", re.MULTILINE),
    ),
    exported=_capitalised_name,
)

_RUST = PatternExtractor(
    patterns=(
        re.compile(
            r"^[ \t]*(?P<export>pub(?:\([^)]*\))?[ \t]+)?(?:const[ \t]+)?(?:async[ \t]+)?(?:unsafe[ \t]+)?"
            r"(?:extern[ \t]+\"[^\"]*\"[ \t]+)?fn[ \t]+(?P<name>[A-Za-z_]\w*)",
            re.MULTILINE,
        ),
    ),
    exported=_group_present("export"),
)

_RUBY = PatternExtractor(
    patterns=(re.compile(r"^[ \t]*def[ \t]+(?:self\.)?(?P<name>[A-Za-z_]\w*[?!]?)", re.MULTILINE),),
    exported=_public_name,
    skip=lambda name: name == "initialize",
)

_PHP = PatternExtractor(
    patterns=(
        re.compile(
            r"^[ \t]*(?P<mods>(?:(?:public|protected|private|static|final|abstract)[ \t]+)*)function[ \t]+&?"
            r"(?P<name>[A-Za-z_]\w*)[ \t]*\(",
            re.MULTILINE,
        ),
    ),
    exported=_modifier_absent("private", "protected"),
    skip=lambda name: name.startswith("__"),
)

_KOTLIN = PatternExtractor(
    patterns=(
        re.compile(
            r"^[ \t]*(?P<mods>(?:(?:public|private|internal|protected|override|open|suspend|inline|operator|infix)[ \t]+)*)"
            r"fun[ \t]+(?:<[^>\n]*>[ \t]*)?(?:[\w.]+\.)?(?P<name>[A-Za-z_]\w*)[ \t]*\(",
            re.MULTILINE,
        ),
    ),
    exported=_modifier_absent("private", "internal", "protected"),
)

_SWIFT = PatternExtractor(
    patterns=(
        re.compile(
            r"^[ \t]*(?P<mods>(?:(?:public|open|private|fileprivate|internal|static|class|override|mutating)[ \t]+)*)"
            r"func[ \t]+(?P<name>[A-Za-z_]\w*)",
            re.MULTILINE,
        ),
    ),
    exported=_modifier_present("public", "open"),
)

_SCALA = PatternExtractor(
    patterns=(
        re.compile(
            r"^[ \t]*(?P<mods>(?:(?:private|protected|override|final)(?:\[[^\]]*\])?[ \t]+)*)def[ \t]+(?P<name>[A-Za-z_]\w*)",
            re.MULTILINE,
        ),
    ),
    exported=_modifier_absent("private", "protected"),
)

_C_FAMILY = PatternExtractor(
    patterns=(
        re.compile(
            r"^(?P<mods>(?:(?:static|inline|extern|virtual)[ \t]+)*)(?P<rtype>[A-Za-z_][\w:<>]*)[ \t*&]+"
            r"(?P<name>[A-Za-z_][\w:~]*)[ \t]*\([^;{)]*\)[ \t]*(?:const[ \t]*)?\r?\n?[ \t]*\{",
            re.MULTILINE,
        ),
    ),
    exported=_modifier_absent("static"),
)

_EXTRACTORS: Dict[str, SignatureExtractor] = {
    "javascript": _JAVASCRIPT,
    "typescript": _JAVASCRIPT,
    "vue": _JAVASCRIPT,
    "svelte": _JAVASCRIPT,
    "python": _PYTHON,
    "java": _JAVA,
    "csharp": _CSHARP,
    "go": _GO,
    "rust": _RUST,
    "ruby": _RUBY,
    "php": _PHP,
    "kotlin": _KOTLIN,
    "swift": _SWIFT,
    "scala": _SCALA,
    "c": _C_FAMILY,
    "cpp": _C_FAMILY,
}


def register_extractor(language: str, extractor: SignatureExtractor) -> None:
    """Install or replace the extractor used for a language."""
    _EXTRACTORS[language.lower()] = extractor


def extractor_for(language: str | None) -> Optional[SignatureExtractor]:
    if not language:
        return None
    return _EXTRACTORS.get(language.lower())


def extract_signatures(
    content: str | None,
    language: str | None,
    *,
    limit: int = MAX_SIGNATURES_PER_FILE,
) -> List[Signature]:
    """Return up to `limit` unique signatures; unsupported languages yield none."""
    if not content:
        return []
    extractor = extractor_for(language)
    if extractor is None:
        return []
    return extractor(content)[: max(0, limit)]


__all__ = [
    "MAX_SIGNATURES_PER_FILE",
    "PatternExtractor",
    "SignatureExtractor",
    "extract_signatures",
    "extractor_for",
    "register_extractor",
]
