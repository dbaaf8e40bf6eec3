"""
TeX macro configuration and expansion.

The typesetting engine has no notion of user macros, so macros are expanded
textually before typesetting. A macro table maps a control word name (without
the backslash) to an expansion template using #1..#9 for its arguments:

    {"bm": ["\\\\boldsymbol{#1}", 1], "RR": ["\\\\mathbb{R}", 0]}

Tables are built once per engine from DEFAULT_MACROS plus an optional JSON
file and are read-only afterwards.
"""

import json
import re
from pathlib import Path
from types import MappingProxyType
from typing import List, Mapping, NamedTuple, Optional, Tuple

from texpng.contexts.rendering.defaults import DEFAULT_MACROS
from texpng.contexts.rendering.exceptions import MacroConfigError, MacroExpansionError

# Expansion passes before giving up (guards against self-referencing macros)
MAX_EXPANSION_PASSES = 50
MAX_MACRO_ARGS = 9

MACRO_NAME_RE = re.compile(r"^[A-Za-z]+$")
PARAM_RE = re.compile(r"#([1-9])")


class MacroDefinition(NamedTuple):
    """A single macro: expansion template and number of brace arguments."""

    template: str
    num_args: int


def _parse_definition(name: str, value, macros_file: Optional[Path]) -> MacroDefinition:
    if isinstance(value, str):
        return MacroDefinition(value, 0)

    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise MacroConfigError(
            f"Macro '{name}' must be [template, argumentCount]", macros_file=macros_file
        )

    template, num_args = value
    if not isinstance(template, str):
        raise MacroConfigError(f"Macro '{name}' template must be a string", macros_file=macros_file)
    # bool is an int subclass; reject it explicitly
    if isinstance(num_args, bool) or not isinstance(num_args, int):
        raise MacroConfigError(
            f"Macro '{name}' argument count must be an integer", macros_file=macros_file
        )
    if not 0 <= num_args <= MAX_MACRO_ARGS:
        raise MacroConfigError(
            f"Macro '{name}' argument count must be between 0 and {MAX_MACRO_ARGS}",
            macros_file=macros_file,
        )

    return MacroDefinition(template, num_args)


def parse_macros(raw: dict, macros_file: Optional[Path] = None) -> dict:
    """
    Validate a decoded macro mapping.

    Args:
        raw: Mapping of macro name -> [template, argumentCount] (or a bare
            template string for a macro without arguments)
        macros_file: Source file, used in error messages

    Returns:
        Dict of name -> MacroDefinition

    Raises:
        MacroConfigError: If the mapping or any entry is malformed
    """
    if not isinstance(raw, dict):
        raise MacroConfigError("Macros file root must be a JSON object", macros_file=macros_file)

    macros = {}
    for key, value in raw.items():
        name = key[1:] if key.startswith("\\") else key
        if not MACRO_NAME_RE.match(name):
            raise MacroConfigError(f"Invalid macro name: '{key}'", macros_file=macros_file)
        macros[name] = _parse_definition(name, value, macros_file)

    return macros


def load_macros(macros_file: Path) -> dict:
    """
    Load user macros from a JSON file.

    Args:
        macros_file: Path to a JSON object of name -> [template, argumentCount]

    Returns:
        Dict of name -> MacroDefinition

    Raises:
        MacroConfigError: If the file is missing, unreadable, not JSON, or malformed
    """
    macros_file = Path(macros_file)
    if not macros_file.exists():
        raise MacroConfigError("Macros file not found", macros_file=macros_file)

    try:
        raw = json.loads(macros_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise MacroConfigError(
            "Error loading macros file", macros_file=macros_file, original_error=e
        ) from e

    return parse_macros(raw, macros_file=macros_file)


def build_macro_table(custom_macros: Optional[dict] = None) -> Mapping[str, MacroDefinition]:
    """
    Merge user macros over the built-in ones.

    Args:
        custom_macros: name -> MacroDefinition, overriding DEFAULT_MACROS

    Returns:
        Read-only mapping of name -> MacroDefinition
    """
    table = {name: MacroDefinition(*value) for name, value in DEFAULT_MACROS.items()}
    if custom_macros:
        table.update(custom_macros)
    return MappingProxyType(table)


def _read_group(text: str, start: int) -> int:
    """Return the index just past the brace group opening at text[start]."""
    depth = 0
    i = start
    while i < len(text):
        c = text[i]
        if c == "\\":
            # Escaped character (\{, \}, \\) never changes depth
            i += 2
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return -1


def _read_argument(text: str, start: int, name: str) -> Tuple[str, int]:
    """
    Read one macro argument starting at text[start].

    Returns:
        (argument text without outer braces, index after the argument)
    """
    i = start
    while i < len(text) and text[i].isspace():
        i += 1

    if i >= len(text):
        raise MacroExpansionError("Missing argument", macro_name=name, latex_snippet=text)

    c = text[i]
    if c == "{":
        end = _read_group(text, i)
        if end < 0:
            raise MacroExpansionError("Unbalanced braces", macro_name=name, latex_snippet=text)
        return text[i + 1 : end - 1], end
    if c == "}":
        raise MacroExpansionError("Missing argument", macro_name=name, latex_snippet=text)
    if c == "\\":
        j = i + 1
        while j < len(text) and text[j].isalpha():
            j += 1
        # Control symbol such as \, is a single character after the backslash
        if j == i + 1:
            j = min(i + 2, len(text))
        return text[i:j], j
    return c, i + 1


def _substitute(definition: MacroDefinition, args: List[str]) -> str:
    return PARAM_RE.sub(
        lambda m: args[int(m.group(1)) - 1] if int(m.group(1)) <= len(args) else m.group(0),
        definition.template,
    )


def _expand_once(text: str, macros: Mapping[str, MacroDefinition]) -> Tuple[str, int]:
    out = []
    expanded = 0
    i = 0
    while i < len(text):
        if text[i] != "\\":
            out.append(text[i])
            i += 1
            continue

        j = i + 1
        while j < len(text) and text[j].isalpha():
            j += 1
        name = text[i + 1 : j]

        if not name:
            # Control symbol (\\, \{, \,): copy both characters
            out.append(text[i : i + 2])
            i += 2
            continue

        definition = macros.get(name)
        if definition is None:
            out.append(text[i:j])
            i = j
            continue

        args = []
        for _ in range(definition.num_args):
            arg, j = _read_argument(text, j, name)
            args.append(arg)

        out.append(_substitute(definition, args))
        expanded += 1
        i = j

    return "".join(out), expanded


def expand_macros(text: str, macros: Mapping[str, MacroDefinition]) -> str:
    """
    Expand every configured macro in text, including macros produced by
    other expansions.

    Args:
        text: TeX math fragment
        macros: Macro table from build_macro_table()

    Returns:
        Fragment containing no configured control words

    Raises:
        MacroExpansionError: On missing arguments, unbalanced braces, or
            expansion that does not terminate
    """
    if not macros:
        return text

    for _ in range(MAX_EXPANSION_PASSES):
        text, expanded = _expand_once(text, macros)
        if expanded == 0:
            return text

    raise MacroExpansionError(
        f"Macro expansion did not terminate after {MAX_EXPANSION_PASSES} passes",
        latex_snippet=text,
    )
