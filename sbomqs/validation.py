"""Schema validation of SBOM documents.

CycloneDX documents are checked with the validators shipped in
``cyclonedx-python-lib``; SPDX 2 documents are parsed and validated with
``spdx-tools``. SPDX 3 validation is not available and is reported as skipped.

Usage:
    from sbomqs.validation import validate_sbom

    result = validate_sbom("cyclonedx", "1.6", raw, "json")
    if result.valid is None:
        print(f"Validation skipped: {result.error_message}")
    elif not result.valid:
        print("\\n".join(result.logs))
"""

import json
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .logging_config import logger
from .models import FileFormat, SpecType


@dataclass
class ValidationResult:
    """Result of SBOM validation.

    The `valid` field has three states:
    - True: Validation passed
    - False: Validation failed
    - None: Validation was skipped (e.g., no validator for the version)
    """

    valid: Optional[bool]
    spec: str
    spec_version: str
    logs: List[str] = field(default_factory=list)

    @property
    def error_message(self) -> Optional[str]:
        return self.logs[0] if self.logs else None

    @classmethod
    def success(cls, spec: str, spec_version: str) -> "ValidationResult":
        """Create a successful validation result."""
        return cls(valid=True, spec=spec, spec_version=spec_version)

    @classmethod
    def failure(cls, spec: str, spec_version: str, logs: List[str]) -> "ValidationResult":
        """Create a failed validation result."""
        return cls(valid=False, spec=spec, spec_version=spec_version, logs=list(logs))

    @classmethod
    def skipped(cls, spec: str, spec_version: str, reason: str) -> "ValidationResult":
        """Create a result indicating validation was skipped."""
        return cls(valid=None, spec=spec, spec_version=spec_version, logs=[reason])


# ---------------------------------------------------------------------------
# CycloneDX
# ---------------------------------------------------------------------------


def _validate_cyclonedx(spec_version: str, raw: bytes, file_format: str) -> ValidationResult:
    from cyclonedx.schema import SchemaVersion
    from cyclonedx.validation.json import JsonStrictValidator
    from cyclonedx.validation.xml import XmlValidator

    try:
        schema_version = SchemaVersion.from_version(spec_version)
    except ValueError:
        reason = f"No schema available for cyclonedx {spec_version}"
        logger.warning(f"{reason}, unable to validate SBOM")
        return ValidationResult.skipped("cyclonedx", spec_version, reason)

    if file_format == FileFormat.XML.value:
        validator = XmlValidator(schema_version)
    else:
        validator = JsonStrictValidator(schema_version)

    try:
        error = validator.validate_str(raw.decode("utf-8"))
    except Exception as e:
        # Raised for versions without a bundled schema (e.g. JSON 1.0/1.1)
        reason = f"cyclonedx {spec_version} {file_format} validation unavailable: {e}"
        logger.warning(reason)
        return ValidationResult.skipped("cyclonedx", spec_version, reason)

    if error is None:
        logger.info(f"SBOM validated successfully against cyclonedx {spec_version} schema")
        return ValidationResult.success("cyclonedx", spec_version)

    message = str(getattr(error, "data", error))
    logger.debug(f"SBOM validation failed: {message}")
    return ValidationResult.failure("cyclonedx", spec_version, [message])


# ---------------------------------------------------------------------------
# SPDX 2
# ---------------------------------------------------------------------------


def _parse_spdx(raw: bytes, file_format: str):
    if file_format in (FileFormat.JSON.value, FileFormat.YAML.value):
        from spdx_tools.spdx.parser.jsonlikedict.json_like_dict_parser import JsonLikeDictParser

        data = json.loads(raw) if file_format == FileFormat.JSON.value else yaml.safe_load(raw)
        return JsonLikeDictParser().parse(data)

    if file_format == FileFormat.TAG_VALUE.value:
        from spdx_tools.spdx.parser.tagvalue.parser import Parser

        return Parser().parse(raw.decode("utf-8"))

    from spdx_tools.spdx.parser.rdf import rdf_parser

    with tempfile.TemporaryDirectory(prefix="sbomqs-validate-") as tmpdir:
        path = Path(tmpdir) / "document.rdf.xml"
        path.write_bytes(raw)
        return rdf_parser.parse_from_file(str(path))


def _validate_spdx(spec_version: str, raw: bytes, file_format: str) -> ValidationResult:
    from spdx_tools.spdx.parser.error import SPDXParsingError
    from spdx_tools.spdx.validation.document_validator import validate_full_spdx_document

    try:
        document = _parse_spdx(raw, file_format)
    except SPDXParsingError as e:
        messages = e.get_messages()
        logger.debug(f"SPDX document failed to parse: {messages[:3]}")
        return ValidationResult.failure("spdx", spec_version, messages)
    except (ValueError, yaml.YAMLError, UnicodeDecodeError) as e:
        return ValidationResult.failure("spdx", spec_version, [f"Invalid {file_format}: {e}"])

    messages = [m.validation_message for m in validate_full_spdx_document(document, spec_version or None)]
    if messages:
        logger.debug(f"SPDX validation found {len(messages)} issue(s)")
        return ValidationResult.failure("spdx", spec_version, messages)

    logger.info(f"SBOM validated successfully against {spec_version}")
    return ValidationResult.success("spdx", spec_version)


def validate_sbom(spec: str, spec_version: str, raw: bytes, file_format: str) -> ValidationResult:
    """Validate raw SBOM bytes against the schema of their specification.

    Args:
        spec: Specification name ("cyclonedx" or "spdx")
        spec_version: Version string as declared by the document
            (e.g. "1.6", "SPDX-2.3", "3.0.1")
        raw: Complete document contents
        file_format: Encoding ("json", "xml", "yaml", "tag-value", "rdf")

    Returns:
        ValidationResult with validation status and messages. Never raises.
    """
    spec = spec.value if isinstance(spec, SpecType) else spec
    file_format = file_format.value if isinstance(file_format, FileFormat) else file_format

    if spec == SpecType.CYCLONEDX.value:
        return _validate_cyclonedx(spec_version, raw, file_format)

    if spec == SpecType.SPDX.value:
        if spec_version.startswith("3"):
            reason = f"No validator available for SPDX {spec_version}"
            logger.debug(reason)
            return ValidationResult.skipped("spdx", spec_version, reason)
        try:
            return _validate_spdx(spec_version, raw, file_format)
        except Exception as e:
            reason = f"SPDX validation could not run: {e}"
            logger.warning(reason)
            return ValidationResult.skipped("spdx", spec_version, reason)

    return ValidationResult.skipped(spec, spec_version, f"Unknown specification: {spec}")
