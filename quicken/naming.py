"""Binding names for imported modules.

Turns a raw file or package name into an identifier according to the
configured rules. The transform is pure: the same name and options always
produce the same identifier.
"""

import re

from .config import LanguageOptions

# Same word boundaries as lodash: acronyms, capitalized words, digit runs
_WORD_PATTERN = re.compile(r"[A-Z]{2,}(?=[A-Z][a-z]+[0-9]*|[^A-Za-z]|$)|[A-Z]?[a-z]+[0-9]*|[A-Z]+|[0-9]+")
_LEADING_DIGITS = re.compile(r"^\d+")
_IDENTIFIER_CHARS = re.compile(r"[A-Za-z0-9_$]")
_JS_GROUP_REFERENCE = re.compile(r"\$(\d+)")


def split_words(name: str) -> list[str]:
    """Split a name into words on separators and case changes.

    >>> split_words("fooBar-baz_QUXValue")
    ['foo', 'Bar', 'baz', 'QUX', 'Value']
    """
    return _WORD_PATTERN.findall(name)


def _to_python_replacement(replacement: str) -> str:
    # "$1" in settings written for JavaScript means group 1
    return _JS_GROUP_REFERENCE.sub(r"\\g<\1>", replacement)


def _upper_first(word: str) -> str:
    return word[:1].upper() + word[1:]


def get_variable_name(name: str, options: LanguageOptions) -> str:
    """Derive a binding identifier from a raw module name.

    Args:
        name: File name without extension, directory name or package name
        options: Language options carrying the naming rules

    Returns:
        Identifier to bind the import to
    """
    for pattern, replacement in options.predefined_variable_names.items():
        rule = re.compile(pattern)
        if rule.search(name):
            return rule.sub(_to_python_replacement(replacement), name, count=1)

    name = _LEADING_DIGITS.sub("", name)

    convention = options.variable_naming_convention
    if convention == "camelCase":
        words = split_words(name)
        return "".join(
            word.lower() if index == 0 else _upper_first(word.lower())
            for index, word in enumerate(words)
        )
    elif convention == "PascalCase":
        return "".join(_upper_first(word) for word in split_words(name))
    elif convention == "snake_case":
        return "_".join(word.lower() for word in split_words(name))
    elif convention == "lowercase":
        return "".join(split_words(name)).lower()
    else:
        return "".join(_IDENTIFIER_CHARS.findall(name))
