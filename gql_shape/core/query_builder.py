"""Query builder for GraphQL operations.

Constructs GraphQL query/mutation documents from shape descriptors, and
declares the variables they use with types inferred from the values passed.

    @dataclass
    class User:
        name: str = ""

    @dataclass
    class Q:
        user: User = gql_field("user(login: $login)", default_factory=User)

    build_query(Q, {"login": "gopher"})
    # 'query($login: String!){user(login: $login){name}}'
"""

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from graphql.error import GraphQLSyntaxError
from graphql.language import Lexer, Source, TokenKind

from .errors import BuildError
from .ir import FieldKind, FieldSpec
from .parser import shape_of
from .scalars import ScalarRegistry
from .variables import TypeInferencer


class OperationType(Enum):
    """Operation keywords the builder can emit."""
    QUERY = "query"
    MUTATION = "mutation"


def referenced_variables(text: str) -> list[str]:
    """Names of the ``$variables`` used in a document, in first-seen order."""
    names: list[str] = []
    lexer = Lexer(Source(text))
    previous = None
    try:
        token = lexer.advance()
        while token.kind is not TokenKind.EOF:
            if previous is TokenKind.DOLLAR and token.kind is TokenKind.NAME:
                if token.value not in names:
                    names.append(token.value)
            previous = token.kind
            token = lexer.advance()
    except GraphQLSyntaxError as e:
        raise BuildError(f"Malformed document: {e.message}") from e
    return names


class QueryBuilder:
    """Builds GraphQL documents from shapes."""

    def __init__(self, scalars: ScalarRegistry | None = None):
        self._inferencer = TypeInferencer(scalars)
        # Selection sets by shape class; descriptors never change
        self._selection_cache: dict[type, str] = {}

    def build(
        self,
        shape: Any,
        variables: Mapping[str, Any] | None = None,
        operation_type: OperationType = OperationType.QUERY,
        operation_name: str | None = None,
        directives: Sequence[str] = (),
    ) -> tuple[str, dict[str, str]]:
        """Build a GraphQL document for a shape.

        Args:
            shape: Shape class or instance
            variables: Variable values, used to infer declared types
            operation_type: ``query`` or ``mutation``
            operation_name: Optional operation name
            directives: Operation-level directives, e.g. ``"@cached(ttl: 60)"``

        Returns:
            The document text and the variable table (name -> GraphQL type)
        """
        spec = shape_of(shape)
        selection_set = self._selection_cache.get(spec.py_type)
        if selection_set is None:
            selection_set = self.render_selection_set(spec)
            self._selection_cache[spec.py_type] = selection_set

        variable_table = self.variable_table(
            " ".join([*directives, selection_set]), variables
        )
        document = self.assemble(
            operation_type, selection_set, variable_table, operation_name, directives
        )
        return document, variable_table

    def render_selection_set(self, spec: FieldSpec) -> str:
        """Render ``{a,b{c}}`` for an object spec."""
        return "{" + ",".join(self._render_fields(spec.selections)) + "}"

    def _render_fields(self, specs: Sequence[FieldSpec]) -> list[str]:
        parts = []
        for spec in specs:
            if spec.inline and not spec.is_fragment:
                # Embedded shape: splice its fields in place
                parts.extend(self._render_fields(spec.selections))
            else:
                parts.append(self._render_field(spec))
        return parts

    def _render_field(self, spec: FieldSpec) -> str:
        leaf = spec.leaf
        text = spec.selection
        if leaf.kind is FieldKind.OBJECT or (leaf.kind is FieldKind.RAW and leaf.selections):
            text += self.render_selection_set(leaf)
        return text

    def variable_table(
        self,
        text: str,
        variables: Mapping[str, Any] | None,
    ) -> dict[str, str]:
        """Infer declared variable types, in order of first use in ``text``.

        Variables supplied but not referenced are declared after the
        referenced ones, in the caller's order.
        """
        referenced = referenced_variables(text)
        variables = variables or {}
        missing = [name for name in referenced if name not in variables]
        if missing:
            raise BuildError(
                "Variables used but not supplied: " + ", ".join(f"${n}" for n in missing)
            )
        order = referenced + [name for name in variables if name not in referenced]
        return {name: self._inferencer.infer(variables[name]) for name in order}

    def assemble(
        self,
        operation_type: OperationType,
        selection_set: str,
        variable_table: Mapping[str, str],
        operation_name: str | None = None,
        directives: Sequence[str] = (),
    ) -> str:
        """Prefix a selection set with its operation header, if it needs one."""
        head = operation_type.value
        if operation_name:
            head += f" {operation_name}"
        if variable_table:
            decls = ", ".join(f"${name}: {type_}" for name, type_ in variable_table.items())
            head += f"({decls})"
        if directives:
            head += " " + " ".join(directives)
        if head == OperationType.QUERY.value:
            return selection_set
        return head + selection_set


_default_builder = QueryBuilder()


def build_query(
    shape: Any,
    variables: Mapping[str, Any] | None = None,
    *,
    operation_name: str | None = None,
    directives: Sequence[str] = (),
) -> str:
    """Build a query document for a shape."""
    document, _ = _default_builder.build(
        shape, variables, OperationType.QUERY, operation_name, directives
    )
    return document


def build_mutation(
    shape: Any,
    variables: Mapping[str, Any] | None = None,
    *,
    operation_name: str | None = None,
    directives: Sequence[str] = (),
) -> str:
    """Build a mutation document for a shape."""
    document, _ = _default_builder.build(
        shape, variables, OperationType.MUTATION, operation_name, directives
    )
    return document
