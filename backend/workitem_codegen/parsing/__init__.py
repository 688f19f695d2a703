from workitem_codegen.parsing.artifact_parser import (
    NO_STRUCTURED_DATA,
    parse_fixed_code_response,
    parse_generated_code_response,
    parse_validation_response,
    serialize_bundle,
)

__all__ = [
    "NO_STRUCTURED_DATA",
    "parse_fixed_code_response",
    "parse_generated_code_response",
    "parse_validation_response",
    "serialize_bundle",
]
