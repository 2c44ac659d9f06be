# This file is part of satellite-pe-tools. See LICENSE file for license information.
"""Validate satellite_pe_tools parameters against the bundled JSON schema."""

import json
import logging
import os
from typing import List, NamedTuple, Optional

from satellite_pe_tools import util

LOG = logging.getLogger(__name__)

SCHEMA_FILE = "schema-satellite-pe-tools.json"


class SchemaProblem(NamedTuple):
    path: str
    message: str

    def format(self) -> str:
        return f"{self.path}: {self.message}"


SchemaProblems = List[SchemaProblem]


class SchemaValidationError(ValueError):
    """Raised when parameters do not validate against the schema."""

    def __init__(self, schema_errors: Optional[SchemaProblems] = None):
        self.schema_errors = sorted(set(schema_errors or []))
        message = "Invalid satellite_pe_tools config: " + ", ".join(
            p.format() for p in self.schema_errors
        )
        super().__init__(message)


def get_schema_dir() -> str:
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "schemas")


def get_schema() -> dict:
    return json.loads(
        util.load_text_file(os.path.join(get_schema_dir(), SCHEMA_FILE))
    )


def validate_config(config, schema: Optional[dict] = None, strict=True):
    """Validate provided config meets the schema definition.

    @param config: Dict of satellite_pe_tools parameters.
    @param schema: jsonschema dict, the bundled schema when None.
    @param strict: When True raise SchemaValidationError instead of logging
        a warning.

    @returns: list of SchemaProblem found.
    """
    from jsonschema import Draft4Validator, FormatChecker

    if schema is None:
        schema = get_schema()
    validator = Draft4Validator(schema, format_checker=FormatChecker())

    errors: SchemaProblems = []
    for schema_error in sorted(
        validator.iter_errors(config), key=lambda e: list(e.path)
    ):
        path = ".".join([str(p) for p in schema_error.path])
        if not path:
            path = "satellite_pe_tools"
        errors.append(SchemaProblem(path, schema_error.message))

    if errors:
        if strict:
            raise SchemaValidationError(errors)
        LOG.warning(
            "Invalid satellite_pe_tools config: %s",
            ", ".join(p.format() for p in errors),
        )
    return errors
