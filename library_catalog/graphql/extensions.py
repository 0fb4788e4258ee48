"""
GraphQL Schema Extensions

ValidationErrorCodes tags documents rejected by GraphQL validation
(unknown fields, wrong argument types such as a non-integer `published`)
with `extensions.code = GRAPHQL_VALIDATION_FAILED` and turns the HTTP
status into 400. These errors happen before any resolver runs.

MaskUnexpectedErrors replaces every resolver failure that wasn't raised
through the helpers in errors.py (database outages, driver errors, bugs)
with a generic INTERNAL_SERVER_ERROR and HTTP 500. The original error is
logged, never sent to the client.
"""

import logging

from graphql import GraphQLError
from strawberry.extensions import MaskErrors, SchemaExtension

from library_catalog.graphql.errors import INTERNAL_ERROR_MESSAGE, ErrorCode

logger = logging.getLogger(__name__)


class ValidationErrorCodes(SchemaExtension):
    """Mark schema validation failures the same way for every client."""

    def on_validate(self):
        yield

        execution_context = self.execution_context
        # Newer Strawberry releases store these as pre_execution_errors
        errors = getattr(execution_context, "pre_execution_errors", None)
        if errors is None:
            errors = getattr(execution_context, "errors", None)
        if not errors:
            return

        for error in errors:
            error.extensions = {
                **(error.extensions or {}),
                "code": ErrorCode.GRAPHQL_VALIDATION_FAILED.value,
            }

        logger.info(f"Rejected GraphQL document: {errors[0].message}")

        response = getattr(execution_context.context, "response", None)
        if response is not None:
            response.status_code = 400


def is_unexpected_error(error: GraphQLError) -> bool:
    """
    Decide whether an error must be hidden from the client.

    Parse and validation errors have no original error and pass through.
    Errors built by errors.py carry an `extensions.code` and pass through.
    Anything else raised inside a resolver is logged and masked.
    """
    original = error.original_error
    if original is None:
        return False

    if isinstance(original, GraphQLError) and "code" in (original.extensions or {}):
        return False
    if "code" in (error.extensions or {}):
        return False

    logger.error(
        f"Unexpected error at {error.path}: {original!r}",
        exc_info=(type(original), original, original.__traceback__),
    )
    return True


class MaskUnexpectedErrors(MaskErrors):
    """Answer unexpected resolver failures with a generic coded error."""

    def __init__(self):
        super().__init__(
            should_mask_error=is_unexpected_error,
            error_message=INTERNAL_ERROR_MESSAGE,
        )

    def anonymise_error(self, error: GraphQLError) -> GraphQLError:
        masked = super().anonymise_error(error)
        masked.extensions = {"code": ErrorCode.INTERNAL_SERVER_ERROR.value}

        response = getattr(self.execution_context.context, "response", None)
        if response is not None:
            response.status_code = 500
        return masked
