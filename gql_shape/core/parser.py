"""Shape parser.

Reduces a dataclass describing the wanted result to a ``FieldSpec`` tree.
Field tags are tokenized with the graphql-core lexer, so string arguments
containing parentheses or ``$`` are handled the way a server would read them.

Example:
    @dataclass
    class Node:
        id: ID = ID("")

    @dataclass
    class Query:
        node1: Node | None = gql_field('node1: node(id: "a")', default=None)
        secret: str = gql_field("-", default="")

    describe(Query)  # cached FieldSpec tree
"""

import dataclasses
import types
import typing
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from graphql.error import GraphQLSyntaxError
from graphql.language import Lexer, Source, TokenKind

from .errors import BuildError
from .ir import FieldKind, FieldSpec
from .naming import to_camel_case
from .scalars import RawJSON

TAG_KEY = "graphql"
INLINE_KEY = "graphql_inline"
IGNORE = "-"

_MISSING = dataclasses.MISSING


def gql_field(
    tag: str | None = None,
    *,
    inline: bool = False,
    default: Any = _MISSING,
    default_factory: Any = _MISSING,
    **kwargs: Any,
) -> Any:
    """Declare a shape field carrying a GraphQL tag.

    Args:
        tag: ``"-"`` to ignore the field, ``"alias: name(args) @dir"`` for a
            custom selection, or ``"... on Type"`` for an inline fragment
        inline: Splice the nested shape's fields into the parent selection
        default: Field default, as for ``dataclasses.field``
        default_factory: Field default factory, as for ``dataclasses.field``
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    if tag is not None:
        metadata[TAG_KEY] = tag
    if inline:
        metadata[INLINE_KEY] = True
    return dataclasses.field(
        default=default, default_factory=default_factory, metadata=metadata, **kwargs
    )


@dataclass(frozen=True)
class FieldTag:
    """A parsed field tag."""
    text: str
    name: str = ""
    alias: str | None = None
    arguments: str = ""
    directives: str = ""
    fragment: bool = False


def _tokenize(text: str) -> list:
    lexer = Lexer(Source(text))
    tokens = []
    try:
        token = lexer.advance()
        while token.kind is not TokenKind.EOF:
            tokens.append(token)
            token = lexer.advance()
    except GraphQLSyntaxError as e:
        raise BuildError(f"Malformed field tag {text!r}: {e.message}") from e
    return tokens


def _check_balanced(text: str, tokens: list) -> None:
    depth = 0
    for token in tokens:
        if token.kind is TokenKind.PAREN_L:
            depth += 1
        elif token.kind is TokenKind.PAREN_R:
            depth -= 1
            if depth < 0:
                break
    if depth != 0:
        raise BuildError(f"Malformed field tag {text!r}: unbalanced argument clause")


def parse_tag(tag: str) -> FieldTag:
    """Split a tag into alias, name, verbatim arguments and directives."""
    text = tag.strip()
    tokens = _tokenize(text)
    if not tokens:
        raise BuildError("Empty field tag")
    _check_balanced(text, tokens)

    if tokens[0].kind is TokenKind.SPREAD:
        rest = tokens[1:]
        if rest and rest[0].kind is TokenKind.NAME and rest[0].value == "on":
            if len(rest) < 2 or rest[1].kind is not TokenKind.NAME:
                raise BuildError(f"Malformed field tag {text!r}: missing type condition")
            rest = rest[2:]
        if rest and rest[0].kind is not TokenKind.AT:
            raise BuildError(f"Malformed field tag {text!r}: unexpected {rest[0].kind.value!r}")
        return FieldTag(text=text, fragment=True)

    if tokens[0].kind is not TokenKind.NAME:
        raise BuildError(f"Malformed field tag {text!r}: expected a field name")
    pos = 1
    alias = None
    name = tokens[0].value
    if pos < len(tokens) and tokens[pos].kind is TokenKind.COLON:
        if pos + 1 >= len(tokens) or tokens[pos + 1].kind is not TokenKind.NAME:
            raise BuildError(f"Malformed field tag {text!r}: expected a field name after alias")
        alias = name
        name = tokens[pos + 1].value
        pos += 2

    arguments = ""
    if pos < len(tokens) and tokens[pos].kind is TokenKind.PAREN_L:
        start = tokens[pos].start
        depth = 0
        for i in range(pos, len(tokens)):
            kind = tokens[i].kind
            if kind is TokenKind.PAREN_L:
                depth += 1
            elif kind is TokenKind.PAREN_R:
                depth -= 1
                if depth == 0:
                    arguments = text[start:tokens[i].end]
                    pos = i + 1
                    break

    directives = ""
    if pos < len(tokens):
        if tokens[pos].kind is not TokenKind.AT:
            raise BuildError(f"Malformed field tag {text!r}: unexpected {tokens[pos].kind.value!r}")
        directives = text[tokens[pos].start:].strip()

    return FieldTag(
        text=text, name=name, alias=alias, arguments=arguments, directives=directives
    )


class ShapeParser:
    """Derives ``FieldSpec`` trees from dataclass shapes."""

    def __init__(self):
        # Shapes currently being described, to reject recursive shapes
        self._stack: list[type] = []

    def parse(self, shape: type) -> FieldSpec:
        """Describe a shape class as the root of a selection."""
        if not (isinstance(shape, type) and dataclasses.is_dataclass(shape)):
            raise BuildError(f"Shape must be a dataclass, got {shape!r}")
        return FieldSpec(
            attr="",
            wire_name="",
            kind=FieldKind.OBJECT,
            py_type=shape,
            children=self._parse_fields(shape),
        )

    def _parse_fields(self, shape: type) -> tuple[FieldSpec, ...]:
        if shape in self._stack:
            raise BuildError(f"Recursive shape {shape.__name__} cannot be selected")
        self._stack.append(shape)
        try:
            try:
                hints = typing.get_type_hints(shape, include_extras=True)
            except NameError as e:
                raise BuildError(f"Cannot resolve annotations of {shape.__name__}: {e}") from e
            children = tuple(
                self._parse_field(f, hints.get(f.name, Any))
                for f in dataclasses.fields(shape)
            )
        finally:
            self._stack.pop()
        self._check_unique_keys(shape, children)
        return children

    def _parse_field(self, f: dataclasses.Field, hint: Any) -> FieldSpec:
        tag_text = f.metadata.get(TAG_KEY)
        inline = bool(f.metadata.get(INLINE_KEY))

        if tag_text is not None and tag_text.strip() == IGNORE:
            return FieldSpec(
                attr=f.name,
                wire_name=to_camel_case(f.name),
                kind=FieldKind.SCALAR,
                py_type=hint,
                ignored=True,
            )

        spec = self._parse_type(hint)
        where = f"field {f.name!r}"

        if tag_text is None:
            if inline and spec.kind is not FieldKind.OBJECT:
                raise BuildError(f"Inline {where} must hold a nested shape")
            wire_name = to_camel_case(f.name)
            return dataclasses.replace(
                spec,
                attr=f.name,
                wire_name=wire_name,
                selection="" if inline else wire_name,
                inline=inline,
            )

        tag = parse_tag(tag_text)
        if tag.fragment:
            if spec.kind is not FieldKind.OBJECT:
                raise BuildError(f"Fragment {where} must hold a nested shape")
            return dataclasses.replace(
                spec, attr=f.name, wire_name="", selection=tag.text, inline=True
            )
        if inline:
            raise BuildError(f"Inline {where} cannot also name a field ({tag.text!r})")
        return dataclasses.replace(
            spec,
            attr=f.name,
            wire_name=tag.name,
            alias=tag.alias,
            arguments=tag.arguments,
            directives=tag.directives,
            selection=tag.text,
        )

    def _parse_type(self, hint: Any) -> FieldSpec:
        """Describe an annotation as an anonymous spec (no attr, no wire name)."""
        nullable = False
        origin = typing.get_origin(hint)

        if origin is typing.Annotated:
            base, *extras = typing.get_args(hint)
            spec = self._parse_type(base)
            selection = next(
                (m for m in extras if isinstance(m, type) and dataclasses.is_dataclass(m)), None
            )
            if spec.kind is FieldKind.RAW and selection is not None:
                # Raw field that still selects sub-fields in the document
                spec = dataclasses.replace(spec, children=self._parse_fields(selection))
            return spec

        if origin is typing.Union or origin is types.UnionType:
            members = [a for a in typing.get_args(hint) if a is not type(None)]
            nullable = len(members) < len(typing.get_args(hint))
            if len(members) != 1:
                raise BuildError(f"Unsupported union annotation {hint!r}")
            inner = self._parse_type(members[0])
            return dataclasses.replace(inner, nullable=nullable or inner.nullable)

        if origin in (list, tuple, Sequence):
            args = [a for a in typing.get_args(hint) if a is not Ellipsis]
            item = self._parse_type(args[0] if args else Any)
            return FieldSpec(
                attr="", wire_name="", kind=FieldKind.LIST, py_type=origin, item=item
            )

        if hint in (list, tuple):
            return FieldSpec(
                attr="", wire_name="", kind=FieldKind.LIST, py_type=hint,
                item=FieldSpec(attr="", wire_name="", kind=FieldKind.SCALAR, py_type=Any),
            )

        if isinstance(hint, type) and issubclass(hint, RawJSON):
            return FieldSpec(attr="", wire_name="", kind=FieldKind.RAW, py_type=hint)

        if isinstance(hint, type) and dataclasses.is_dataclass(hint):
            return FieldSpec(
                attr="",
                wire_name="",
                kind=FieldKind.OBJECT,
                py_type=hint,
                children=self._parse_fields(hint),
            )

        if origin is dict or hint is dict or hint is Any or hint is object:
            return FieldSpec(attr="", wire_name="", kind=FieldKind.SCALAR, py_type=dict if origin else hint)

        if isinstance(hint, type) and not issubclass(hint, (set, frozenset, bytes)):
            return FieldSpec(attr="", wire_name="", kind=FieldKind.SCALAR, py_type=hint)

        raise BuildError(f"Unsupported field annotation {hint!r}")

    @staticmethod
    def _check_unique_keys(shape: type, children: tuple[FieldSpec, ...]) -> None:
        seen: set[str] = set()

        def walk(specs):
            for spec in specs:
                if spec.ignored or spec.is_fragment:
                    continue
                if spec.inline:
                    walk(spec.children)
                    continue
                if spec.response_key in seen:
                    raise BuildError(
                        f"Duplicate response key {spec.response_key!r} in {shape.__name__}"
                    )
                seen.add(spec.response_key)

        walk(children)


@lru_cache(maxsize=None)
def describe(shape: type) -> FieldSpec:
    """Return the cached descriptor of a shape class."""
    return ShapeParser().parse(shape)


def shape_of(target: Any) -> FieldSpec:
    """Descriptor of a shape instance or class."""
    shape = target if isinstance(target, type) else type(target)
    return describe(shape)

