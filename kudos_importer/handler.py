"""
AWS Lambda entrypoint for the Kudos issue importer

Handles API Gateway / Lambda function URL proxy events whose body is a
project import request, and answers with a plain-text issue count.
"""

import asyncio
import base64
import binascii
import logging
import sys
from typing import Dict, Any, Optional

from kudos_importer.config.settings import settings
from kudos_importer.errors import IssueImportError, RequestDecodeError
from kudos_importer.orchestrator import IssueImportOrchestrator
from kudos_importer.schemas.project_payload import decode_project_payload

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SUCCESS_TEMPLATE = "Total issues imported: {total}"
INVALID_BODY_MESSAGE = "Invalid request body"
IMPORT_FAILED_MESSAGE = "Issue import failed"

# Instantiate orchestrator once per Lambda execution environment
orchestrator = IssueImportOrchestrator(config=settings)


def _text_response(status_code: int, body: str) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"content-type": "text/plain"},
        "body": body,
    }


def extract_body(event: Optional[Dict[str, Any]]) -> str:
    """
    Pull the textual request body out of a proxy event.

    Raises:
        RequestDecodeError: when the body is missing or cannot be decoded as text
    """
    event = event or {}
    body = event.get("body")
    if not isinstance(body, str):
        raise RequestDecodeError("Invalid request body type")

    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise RequestDecodeError("Request body is not valid base64 text") from exc
    return body


def lambda_handler(event: Optional[Dict[str, Any]], context: Any) -> Dict[str, Any]:
    """
    AWS Lambda entrypoint for project issue imports.

    Args:
        event: Proxy event whose `body` is the project import JSON
        context: Lambda context object

    Returns:
        Proxy response with statusCode, headers and a plain-text body
    """
    try:
        project = decode_project_payload(extract_body(event))
    except RequestDecodeError as e:
        logger.warning(f"Rejected import request: {e}")
        return _text_response(400, INVALID_BODY_MESSAGE)

    logger.info(f"Lambda invoked for project: {project.slug}")

    try:
        result = asyncio.run(orchestrator.run_import(project))
    except IssueImportError as e:
        logger.error(f"Import failed for project {project.slug}: {type(e).__name__}")
        return _text_response(500, IMPORT_FAILED_MESSAGE)
    except Exception:
        logger.error(f"Unexpected failure importing project {project.slug}", exc_info=True)
        return _text_response(500, IMPORT_FAILED_MESSAGE)

    logger.info(f"Import completed: {result.total_issues_imported} issues for project {result.project_id}")
    return _text_response(200, SUCCESS_TEMPLATE.format(total=result.total_issues_imported))


# Allow local runs via `python -m kudos_importer.handler payload.json`
if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: python -m kudos_importer.handler <payload.json>")
        sys.exit(2)

    with open(sys.argv[1], encoding="utf-8") as payload_file:
        test_event = {"body": payload_file.read()}

    print("=" * 60)
    print("Kudos Issue Importer - Local Run")
    print("=" * 60)

    result = lambda_handler(test_event, None)

    print("\nResult:")
    print(result)
    print("=" * 60)
