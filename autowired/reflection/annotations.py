"""
Doc Comment Annotations
=======================

Parses ``@name`` annotations out of documentation comments (attribute and
method docstrings).

Supported forms, one annotation per line:

    @autowire
    @var SampleService
    @autowire("shiny", factory=SampleServiceFactory)

Parenthesised arguments use Python call syntax. Literal values are parsed
with ``ast.literal_eval``; bare (dotted) names such as ``SampleServiceFactory``
or ``services.SampleServiceFactory`` are kept as strings, so they can be
resolved against the declaring class later.
"""

from __future__ import annotations

import ast
import re
from typing import Any, Collection, Dict, Iterator, List, Optional, Tuple, Union

from ..exceptions import UnexpectedValueError

ArgumentSet = Dict[Union[int, str], Any]

_ANNOTATION = re.compile(r"^[ \t*]*@([A-Za-z_][\w.\\-]*)(.*)$")


def parse_doc_comment(
    doc: Optional[str],
    names: Optional[Collection[str]] = None,
) -> Dict[str, List[ArgumentSet]]:
    """Parse the annotations of a doc comment.

    Args:
        doc: Documentation comment, may be empty
        names: Only parse annotations with these names, all when None.
            Arguments of other annotations are never parsed, so they may
            use any syntax

    Returns:
        Mapping of annotation name (case preserved) to one argument set per
        occurrence, in order of appearance

    Raises:
        UnexpectedValueError: If parenthesised arguments are not valid syntax
    """
    result: Dict[str, List[ArgumentSet]] = {}
    for name, source in _scan(doc):
        if names is not None and name not in names:
            continue
        if source.startswith("("):
            arguments = _parse_arguments(name, source)
        elif source:
            arguments = {0: source}
        else:
            arguments = {}
        result.setdefault(name, []).append(arguments)

    return result


def annotation_names(doc: Optional[str]) -> List[str]:
    """Return the names of all annotations of a doc comment, in order.

    Arguments are not parsed.
    """
    return [name for name, _ in _scan(doc)]


def parse_annotation(doc: Optional[str], name: str) -> Optional[str]:
    """Return the first word of the last ``@name`` annotation, if any.

    Used for single-value annotations such as ``@var`` and ``@return``.
    """
    occurrences = parse_doc_comment(doc, names=(name,)).get(name)
    if not occurrences:
        return None
    value = occurrences[-1].get(0)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.split()[0]


def _scan(doc: Optional[str]) -> Iterator[Tuple[str, str]]:
    """Yield (name, raw arguments) of every annotation line."""
    lines = (doc or "").splitlines()
    i = 0
    while i < len(lines):
        match = _ANNOTATION.match(lines[i])
        i += 1
        if not match:
            continue

        name, rest = match.group(1), match.group(2)
        if rest.lstrip().startswith("("):
            source = rest.lstrip()
            # Arguments may continue on the following lines
            while source.count("(") > source.count(")") and i < len(lines):
                source += "\n" + lines[i]
                i += 1
        elif rest and not rest[0].isspace():
            # "@foo-bar" style tokens are not annotations
            continue
        else:
            source = rest.strip()

        yield name, source


def _parse_arguments(name: str, source: str) -> ArgumentSet:
    closing = source.rfind(")")
    inner = source[1:closing] if closing > 0 else source[1:]
    try:
        call = ast.parse(f"_({inner})", mode="eval").body
    except SyntaxError as e:
        raise UnexpectedValueError(
            f"Invalid arguments of annotation @{name}: ({inner.strip()}): {e.msg}"
        ) from e

    assert isinstance(call, ast.Call)
    arguments: ArgumentSet = {}
    for position, node in enumerate(call.args):
        arguments[position] = _value(name, node)
    for keyword in call.keywords:
        if keyword.arg is None:
            raise UnexpectedValueError(
                f"Unpacking is not supported in annotation @{name}."
            )
        arguments[keyword.arg] = _value(name, keyword.value)
    return arguments


def _value(name: str, node: ast.expr) -> Any:
    try:
        return ast.literal_eval(node)
    except ValueError:
        pass

    if _is_dotted_name(node):
        return ast.unparse(node)

    raise UnexpectedValueError(
        f"Unsupported value {ast.unparse(node)!r} in annotation @{name}, "
        "use literals or class names."
    )


def _is_dotted_name(node: ast.expr) -> bool:
    while isinstance(node, ast.Attribute):
        node = node.value
    return isinstance(node, ast.Name)


__all__ = ["ArgumentSet", "annotation_names", "parse_doc_comment", "parse_annotation"]
