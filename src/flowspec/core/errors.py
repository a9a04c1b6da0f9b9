"""
Error types for flowspec graph loading, DSL authoring and model validation.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class FlowSpecError(Exception):
    """Base exception for all flowspec errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class GraphError(FlowSpecError):
    """
    Raised when the module graph cannot be built or executed.

    Examples:
    - Module requested at runtime that is not in the graph
    - External specifier that cannot be imported or mapped
    - Relative import escaping the virtual file tree
    """

    pass


class DSLError(FlowSpecError):
    """
    Raised when flow source code misuses the DSL.

    Examples:
    - Calling example() outside of a rule
    - Data sinks declared on a query slice
    - Invalid request document
    - DSL call with no active registry
    """

    pass


class ConfigError(FlowSpecError):
    """
    Raised when flowspec.toml cannot be loaded.

    Examples:
    - Invalid TOML syntax
    - Invalid discovery pattern
    """

    pass


class ModelValidationError(FlowSpecError):
    """
    Raised when a Model fails reference validation.

    Examples:
    - Example ref left as the InferredType placeholder
    - Example ref naming a message that does not exist
    - Ref classification that disagrees with the message type
    """

    def __init__(self, errors: list[str], context: Optional["ErrorContext"] = None):
        self.errors = errors
        message = "Model validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message, context)


@dataclass
class ErrorContext:
    """Source location of an error (1-indexed line and column)."""

    file: Path
    line: int = 1
    column: int = 1

    def format(self) -> str:
        """Format as ``flows/items_flow.py:10:5``."""
        return f"{self.file}:{self.line}:{self.column}"


def make_graph_error(message: str, file: str | Path | None = None, line: int = 1, column: int = 1) -> GraphError:
    """
    Helper to create a GraphError located at an import statement.

    Args:
        message: Error description
        file: Graph path of the importing module, if known
        line: Line of the offending import
        column: Column of the offending import
    """
    if file is None:
        return GraphError(message)
    return GraphError(message, ErrorContext(file=Path(file), line=line, column=column))


def make_dsl_error(message: str, file: str | Path | None = None, line: int = 1) -> DSLError:
    """Helper to create a DSLError pointing at the module being executed."""
    if file is None:
        return DSLError(message)
    return DSLError(message, ErrorContext(file=Path(file), line=line))
