from __future__ import annotations

import re
from collections import Counter
from enum import Enum
from typing import Iterable

WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z0-9]+")


class Convention(str, Enum):
    pascal = "PascalCase"
    camel = "camelCase"
    kebab = "kebab-case"

    @classmethod
    def parse(cls, value: str) -> "Convention":
        # "kebab-case.test" names the stem convention of a suffixed file.
        stem = value.strip().split(".", 1)[0]
        for convention in cls:
            if stem in (convention.value, convention.name):
                return convention
        raise ValueError(f"Unknown naming convention: {value}")


# Declaration order doubles as tie-break priority.
CONVENTION_PATTERNS = {
    Convention.pascal: re.compile(r"^[A-Z][a-zA-Z0-9]*$"),
    Convention.camel: re.compile(r"^[a-z][a-zA-Z0-9]*$"),
    Convention.kebab: re.compile(r"^[a-z][a-z0-9-]*$"),
}


def strip_extension(filename: str) -> str:
    name = filename.rsplit("/", 1)[-1]
    if name.startswith("."):
        return name
    return name.split(".", 1)[0]


def matches_convention(name: str, convention: Convention) -> bool:
    return bool(CONVENTION_PATTERNS[convention].match(name))


def infer_convention(filenames: Iterable[str], default: Convention = Convention.pascal) -> Convention:
    """Majority vote of each convention's regex over the extension-less names.

    A name can match several conventions (``foo`` is both camelCase and
    kebab-case); every match counts. Ties go to the earlier entry of
    ``CONVENTION_PATTERNS``. When nothing matches at all, ``default`` wins.
    """
    counts: Counter[Convention] = Counter()
    for filename in filenames:
        stem = strip_extension(filename)
        for convention in CONVENTION_PATTERNS:
            if matches_convention(stem, convention):
                counts[convention] += 1

    if not counts:
        return default

    best = max(counts.values())
    for convention in CONVENTION_PATTERNS:
        if counts[convention] == best:
            return convention
    return default


def split_words(name: str) -> list[str]:
    words: list[str] = []
    for chunk in re.split(r"[\s_\-.]+", name):
        words.extend(WORD_RE.findall(chunk))
    return [word.lower() for word in words if word]


def suggest_name(name: str, convention: Convention) -> str:
    words = split_words(name)
    if not words:
        return name
    if convention == Convention.pascal:
        return "".join(word.capitalize() for word in words)
    if convention == Convention.camel:
        return words[0] + "".join(word.capitalize() for word in words[1:])
    return "-".join(words)
