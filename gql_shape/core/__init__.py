"""Core modules for typed-shape GraphQL queries."""

from .client import GraphQLClient
from .decoder import ShapeDecoder
from .errors import (
    REQUEST_ERROR,
    BuildError,
    DecodeError,
    ErrorRecord,
    GraphQLError,
    Location,
    RequestError,
)
from .hooks import (
    AddHeaderHook,
    BindExtensions,
    BindResponseHeaders,
    HookRunner,
    RequestHook,
    ResponseHook,
)
from .ir import FieldKind, FieldSpec
from .options import (
    CallOptions,
    Debug,
    DeclareVariables,
    OperationDirective,
    OperationName,
)
from .parser import IGNORE, ShapeParser, describe, gql_field, parse_tag
from .query_builder import (
    OperationType,
    QueryBuilder,
    build_mutation,
    build_query,
    referenced_variables,
)
from .reconciler import ResponseEnvelope, ResponseReconciler
from .scalars import (
    ID,
    DateHandler,
    DateTimeHandler,
    DecimalHandler,
    RawJSON,
    ScalarHandler,
    ScalarRegistry,
    UUIDHandler,
)
from .variables import TypeInferencer, Variable, VariableSerializer, infer_type

__all__ = [
    # Client
    "GraphQLClient",
    # Shapes
    "FieldKind",
    "FieldSpec",
    "IGNORE",
    "ShapeParser",
    "describe",
    "gql_field",
    "parse_tag",
    # Scalars
    "ID",
    "RawJSON",
    "ScalarHandler",
    "ScalarRegistry",
    "DateTimeHandler",
    "DateHandler",
    "DecimalHandler",
    "UUIDHandler",
    # Query Builder
    "OperationType",
    "QueryBuilder",
    "build_query",
    "build_mutation",
    "referenced_variables",
    # Variables
    "TypeInferencer",
    "Variable",
    "VariableSerializer",
    "infer_type",
    # Responses
    "ResponseEnvelope",
    "ResponseReconciler",
    "ShapeDecoder",
    # Options and hooks
    "CallOptions",
    "Debug",
    "DeclareVariables",
    "OperationDirective",
    "OperationName",
    "AddHeaderHook",
    "BindExtensions",
    "BindResponseHeaders",
    "HookRunner",
    "RequestHook",
    "ResponseHook",
    # Errors
    "REQUEST_ERROR",
    "BuildError",
    "DecodeError",
    "ErrorRecord",
    "GraphQLError",
    "Location",
    "RequestError",
]
