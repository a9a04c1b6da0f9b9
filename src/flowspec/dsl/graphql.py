"""
GraphQL request documents for slices.

``gql`` parses eagerly so a malformed document fails where it is written.
"""

from __future__ import annotations

from typing import Any

from graphql import DocumentNode, parse, print_ast

from ..core.errors import DSLError


def gql(text: str) -> DocumentNode:
    """
    Parse a GraphQL document.

    Raises:
        graphql.GraphQLSyntaxError: If the text is not valid GraphQL
    """
    return parse(text)


def request_text(request: Any) -> str:
    """
    Normalize a slice request to text.

    Raises:
        DSLError: If the request is neither a string nor a parsed document
    """
    if isinstance(request, str):
        return request
    if isinstance(request, DocumentNode):
        return print_ast(request)
    raise DSLError("Invalid GraphQL query format")
