"""Reorder top-level declarations following the GDScript style guide.

The order is: class annotations, ``class_name``, ``extends``, the class
docstring, signals, enums, constants, static variables, exported variables,
regular variables, ``@onready`` variables, methods and inner classes. Methods
are ordered ``_static_init`` first, then static functions, then Godot's
built-in virtual methods in their call order, then everything else. Within a
group public names come before pseudo-private ones, then names sort
alphabetically.

Comments and annotations move with the declaration that follows them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from tree_sitter import Node

from gdscript_formatter.core.document import SyntaxDocument
from gdscript_formatter.core.parser import node_text
from gdscript_formatter.errors import ReorderError

logger = logging.getLogger(__name__)

BUILTIN_VIRTUAL_METHODS = (
    "_init",
    "_enter_tree",
    "_ready",
    "_process",
    "_physics_process",
    "_exit_tree",
    "_input",
    "_unhandled_input",
    "_gui_input",
    "_draw",
    "_notification",
    "_get_configuration_warnings",
    "_validate_property",
    "_get_property_list",
    "_property_can_revert",
    "_property_get_revert",
    "_get",
    "_set",
    "_to_string",
)

_CLASS_ANNOTATIONS = ("@tool", "@icon", "@static_unload")

_SIGNAL_NAME = re.compile(r"\bsignal\s+(\w+)")
_ENUM_NAME = re.compile(r"\benum\s+(\w+)")
_CONST_NAME = re.compile(r"\bconst\s+(\w+)")
_VAR_NAME = re.compile(r"\bvar\s+(\w+)")
_FUNC_NAME = re.compile(r"\bfunc\s+(\w+)")
_CLASS_NAME = re.compile(r"\bclass\s+(\w+)")


class DeclarationKind(IntEnum):
    CLASS_ANNOTATION = 1
    CLASS_NAME = 2
    EXTENDS = 3
    DOCSTRING = 4
    SIGNAL = 5
    ENUM = 6
    CONSTANT = 7
    STATIC_VARIABLE = 8
    EXPORT_VARIABLE = 9
    REGULAR_VARIABLE = 10
    ONREADY_VARIABLE = 11
    METHOD = 12
    INNER_CLASS = 16
    UNKNOWN = 255


class MethodType(IntEnum):
    STATIC_INIT = 0
    STATIC_FUNCTION = 1
    BUILTIN_VIRTUAL = 2
    CUSTOM = 3


class _Group(Enum):
    HEADER = "header"
    SIGNAL = "signal"
    ENUM = "enum"
    CONSTANT = "constant"
    STATIC_VARIABLE = "static_variable"
    EXPORT_VARIABLE = "export_variable"
    REGULAR_VARIABLE = "regular_variable"
    ONREADY_VARIABLE = "onready_variable"
    METHOD = "method"
    INNER_CLASS = "inner_class"


_GROUPS = {
    DeclarationKind.CLASS_ANNOTATION: _Group.HEADER,
    DeclarationKind.CLASS_NAME: _Group.HEADER,
    DeclarationKind.EXTENDS: _Group.HEADER,
    DeclarationKind.DOCSTRING: _Group.HEADER,
    DeclarationKind.SIGNAL: _Group.SIGNAL,
    DeclarationKind.ENUM: _Group.ENUM,
    DeclarationKind.CONSTANT: _Group.CONSTANT,
    DeclarationKind.STATIC_VARIABLE: _Group.STATIC_VARIABLE,
    DeclarationKind.EXPORT_VARIABLE: _Group.EXPORT_VARIABLE,
    DeclarationKind.REGULAR_VARIABLE: _Group.REGULAR_VARIABLE,
    DeclarationKind.ONREADY_VARIABLE: _Group.ONREADY_VARIABLE,
    DeclarationKind.METHOD: _Group.METHOD,
    DeclarationKind.INNER_CLASS: _Group.INNER_CLASS,
    DeclarationKind.UNKNOWN: _Group.METHOD,
}


@dataclass
class Declaration:
    kind: DeclarationKind
    name: str
    text: str
    method_type: MethodType = MethodType.CUSTOM
    builtin_priority: int = 0
    attached_comments: list[str] = field(default_factory=list)
    trailing_comments: list[str] = field(default_factory=list)

    @property
    def is_private(self) -> bool:
        return self.kind not in _HEADER_KINDS and self.name.startswith("_")

    @property
    def group(self) -> _Group:
        return _GROUPS[self.kind]

    def sort_key(self) -> tuple[int, int, int, bool, int, str]:
        if self.kind == DeclarationKind.CLASS_ANNOTATION:
            return (self.kind, 0, 0, False, _annotation_rank(self.text), "")
        if self.kind == DeclarationKind.UNKNOWN:
            # Unrecognized statements keep their relative order.
            return (self.kind, 0, 0, False, 0, "")
        method_type = self.method_type if self.kind == DeclarationKind.METHOD else 0
        return (self.kind, method_type, self.builtin_priority, self.is_private, 0, self.name)


_HEADER_KINDS = frozenset(
    {
        DeclarationKind.CLASS_ANNOTATION,
        DeclarationKind.CLASS_NAME,
        DeclarationKind.EXTENDS,
        DeclarationKind.DOCSTRING,
        DeclarationKind.UNKNOWN,
    }
)


def _annotation_rank(text: str) -> int:
    if text.startswith("@tool"):
        return 0
    if text.startswith("@icon"):
        return 1
    return 2


def _is_class_annotation(text: str) -> bool:
    return text.startswith(_CLASS_ANNOTATIONS)


def _name(node: Node, source: bytes, pattern: re.Pattern[str], fallback: str) -> str:
    name_node = node.child_by_field_name("name")
    if name_node is not None:
        return node_text(name_node, source)
    match = pattern.search(node_text(node, source))
    return match.group(1) if match else fallback


def classify(node: Node, source: bytes, annotations: list[str] | None = None) -> Declaration:
    """Classify one top-level node. ``annotations`` are standalone annotations that precede it."""
    text = node_text(node, source)
    kind = node.type

    if kind == "signal_statement":
        return Declaration(DeclarationKind.SIGNAL, _name(node, source, _SIGNAL_NAME, "unknown_signal"), text)
    if kind == "enum_definition":
        return Declaration(DeclarationKind.ENUM, _name(node, source, _ENUM_NAME, "unnamed_enum"), text)
    if kind == "const_statement":
        return Declaration(DeclarationKind.CONSTANT, _name(node, source, _CONST_NAME, "unknown_const"), text)
    if kind == "variable_statement":
        return _classify_variable(node, source, text, annotations or [])
    if kind in ("function_definition", "constructor_definition"):
        return _classify_method(node, source, text)
    if kind == "class_definition":
        return Declaration(DeclarationKind.INNER_CLASS, _name(node, source, _CLASS_NAME, "unknown_class"), text)
    return Declaration(DeclarationKind.UNKNOWN, text, text)


def _classify_variable(node: Node, source: bytes, text: str, annotations: list[str]) -> Declaration:
    name = _name(node, source, _VAR_NAME, "unknown_var")
    marks = " ".join([*annotations, text])
    if "@export" in marks:
        kind = DeclarationKind.EXPORT_VARIABLE
    elif "@onready" in marks:
        kind = DeclarationKind.ONREADY_VARIABLE
    elif re.search(r"\bstatic\s+var\b", text):
        kind = DeclarationKind.STATIC_VARIABLE
    else:
        kind = DeclarationKind.REGULAR_VARIABLE
    return Declaration(kind, name, text)


def _classify_method(node: Node, source: bytes, text: str) -> Declaration:
    match = _FUNC_NAME.search(text)
    name = match.group(1) if match else "unknown_func"
    if node.type == "constructor_definition" and not match:
        name = "_init"

    builtin_priority = 0
    if name == "_static_init":
        method_type = MethodType.STATIC_INIT
    elif re.match(r"\s*static\s+func\b", text):
        method_type = MethodType.STATIC_FUNCTION
    elif name in BUILTIN_VIRTUAL_METHODS:
        method_type = MethodType.BUILTIN_VIRTUAL
        builtin_priority = BUILTIN_VIRTUAL_METHODS.index(name) + 1
    else:
        method_type = MethodType.CUSTOM
    return Declaration(DeclarationKind.METHOD, name, text, method_type=method_type, builtin_priority=builtin_priority)


def _on_same_line(previous: Node, comment: Node, source: bytes) -> bool:
    # Blocks may end after their final newline.
    return b"\n" not in source[previous.end_byte - 1 : comment.start_byte]


def _class_docstring(nodes: list[Node], source: bytes) -> set[int]:
    """Indices of the ``##`` comments that document the script itself."""
    indices: list[int] = []
    first_declaration: int | None = None
    previous: Node | None = None
    for index, node in enumerate(nodes):
        if node.type == "comment":
            if previous is not None and _on_same_line(previous, node, source):
                continue
            if node_text(node, source).lstrip().startswith("##"):
                indices.append(index)
            continue
        if node.type in ("class_name_statement", "extends_statement", "annotation"):
            previous = node
            continue
        first_declaration = index
        break

    # A block sitting right above the first declaration documents that declaration.
    if indices and first_declaration is not None and indices[-1] + 1 == first_declaration:
        if nodes[indices[-1]].end_point.row + 1 == nodes[first_declaration].start_point.row:
            return set()
    return set(indices)


def extract_declarations(document: SyntaxDocument) -> list[Declaration]:
    source = document.source
    nodes = list(document.root.named_children)
    docstring_indices = _class_docstring(nodes, source)
    docstring = "\n".join(node_text(nodes[index], source) for index in sorted(docstring_indices))

    declarations: list[Declaration] = []
    pending_comments: list[str] = []
    pending_annotations: list[str] = []
    region_end: str | None = None
    docstring_emitted = not docstring

    def emit_docstring() -> None:
        nonlocal docstring_emitted
        if not docstring_emitted:
            declarations.append(Declaration(DeclarationKind.DOCSTRING, "", docstring))
            docstring_emitted = True

    # The node and declaration a comment on the same line belongs to.
    line_owner: tuple[Node, Declaration] | None = None

    for index, node in enumerate(nodes):
        text = node_text(node, source)
        kind = node.type

        if kind == "comment":
            if line_owner is not None and _on_same_line(line_owner[0], node, source):
                owner_node, owner = line_owner
                owner.text += source[owner_node.end_byte : node.end_byte].decode("utf-8", errors="replace")
            elif index not in docstring_indices:
                pending_comments.append(text)
            line_owner = None
            continue
        line_owner = None
        if kind == "region_start":
            pending_comments.append(text)
            continue
        if kind == "region_end":
            region_end = text
            continue
        if kind == "annotation":
            if _is_class_annotation(text):
                declaration = Declaration(DeclarationKind.CLASS_ANNOTATION, text, text)
                declarations.append(declaration)
                line_owner = (node, declaration)
            else:
                pending_annotations.append(text)
            continue
        if kind == "class_name_statement":
            declaration = Declaration(DeclarationKind.CLASS_NAME, text, text, attached_comments=[*pending_comments])
            declarations.append(declaration)
            line_owner = (node, declaration)
            pending_comments.clear()
            pending_annotations.clear()
            continue
        if kind == "extends_statement":
            declaration = Declaration(DeclarationKind.EXTENDS, text, text, attached_comments=[*pending_comments])
            declarations.append(declaration)
            line_owner = (node, declaration)
            pending_comments.clear()
            pending_annotations.clear()
            emit_docstring()
            continue

        declaration = classify(node, source, pending_annotations)
        line_owner = (node, declaration)
        emit_docstring()
        declaration.attached_comments = [*pending_annotations, *pending_comments]
        if region_end is not None:
            _attach_region_end(declarations, region_end)
            region_end = None
        declarations.append(declaration)
        pending_comments.clear()
        pending_annotations.clear()

    emit_docstring()
    leftovers = [*pending_annotations, *pending_comments]
    if region_end is not None:
        if not _attach_region_end(declarations, region_end):
            leftovers.append(region_end)
    if leftovers:
        if declarations:
            declarations[-1].trailing_comments.extend(leftovers)
        else:
            text = "\n".join(leftovers)
            declarations.append(Declaration(DeclarationKind.UNKNOWN, text, text))
    return declarations


def _attach_region_end(declarations: list[Declaration], region_end: str) -> bool:
    for declaration in reversed(declarations):
        if declaration.kind == DeclarationKind.METHOD and any(
            comment.strip().startswith("#region") for comment in declaration.attached_comments
        ):
            declaration.trailing_comments.append(region_end)
            return True
    return False


def sort_declarations(declarations: list[Declaration]) -> list[Declaration]:
    return sorted(declarations, key=Declaration.sort_key)


def _separator(previous: _Group | None, current: Declaration) -> str:
    if previous is None:
        return ""
    is_method = current.kind == DeclarationKind.METHOD
    is_inner_class = current.kind == DeclarationKind.INNER_CLASS
    if previous != current.group or is_method or (is_inner_class and previous == _Group.INNER_CLASS):
        if is_method or (is_inner_class and previous in (_Group.METHOD, _Group.INNER_CLASS)):
            return "\n\n"
        return "\n"
    return ""


def _line(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


def build_reordered_code(declarations: list[Declaration]) -> str:
    parts: list[str] = []
    previous: _Group | None = None
    for declaration in declarations:
        parts.append(_separator(previous, declaration))
        parts.extend(_line(comment) for comment in declaration.attached_comments)
        parts.append(_line(declaration.text))
        parts.extend(_line(comment) for comment in declaration.trailing_comments)
        previous = declaration.group
    output = "".join(parts)
    return output if output.endswith("\n") else output + "\n"


class StyleGuideReorderer:
    """Implements the ``Reorderer`` protocol."""

    def reorder(self, source: str) -> str:
        document = SyntaxDocument.parse(source)
        if document.root.has_error:
            raise ReorderError("the script has syntax errors")
        declarations = extract_declarations(document)
        logger.debug("Reordering %d top-level declaration(s)", len(declarations))
        return build_reordered_code(sort_declarations(declarations))


def reorder_gdscript(source: str) -> str:
    return StyleGuideReorderer().reorder(source)
