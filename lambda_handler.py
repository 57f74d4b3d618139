"""
AWS Lambda handler for the Deal Economics API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import base64
import json
import logging

from deal_engine import DealProcessor
from deal_engine.backend import BackendClient, BackendError
from deal_engine.config import Settings
from deal_engine.models import FinalizeRequest
from deal_engine.store import DealPersistenceError, DealRecordStore

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

settings = Settings.from_env()

# Initialize processor (reused across warm invocations)
processor = DealProcessor(settings)

# Created on first use; tests may replace it
backend_client = None

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}


def _response(status_code, payload):
    return {"statusCode": status_code, "headers": CORS_HEADERS, "body": json.dumps(payload)}


def get_backend_client():
    global backend_client
    if backend_client is None and settings.backend_enabled:
        try:
            backend_client = BackendClient(settings)
        except BackendError as e:
            logger.error(f"Backend client unavailable: {str(e)}")
    return backend_client


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health
    - GET /api
    - POST /deal_breakdown
    - POST /partner_report
    - POST /finalize_deal
    - OPTIONS (CORS preflight)
    """
    # Handle CORS preflight
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": ""}

    # Get path (supports both REST API and HTTP API formats)
    path = event.get("path") or event.get("rawPath", "")

    if path == "/health" and http_method == "GET":
        return handle_health()
    elif path == "/api" and http_method == "GET":
        return handle_api_info()
    elif path == "/deal_breakdown" and http_method == "POST":
        return handle_deal_breakdown(event)
    elif path == "/partner_report" and http_method == "POST":
        return handle_partner_report(event)
    elif path == "/finalize_deal" and http_method == "POST":
        return handle_finalize_deal(event)
    else:
        return _response(404, {"error": "Not found", "path": path})


def parse_body(event):
    """
    Decode the request body.

    Returns None for an empty body. Raises json.JSONDecodeError for bad JSON.
    """
    body = event.get("body", "")
    if not isinstance(body, str):
        return body or None
    if not body:
        return None
    # Handle base64 encoded body (API Gateway)
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return json.loads(body)


def handle_health():
    """Health check endpoint."""
    return _response(200, {"status": "healthy", "environment": settings.environment})


def handle_api_info():
    """API information endpoint."""
    return _response(
        200,
        {
            "status": "ok",
            "message": "Deal Economics API",
            "version": "1.0",
            "environment": settings.environment,
            "runtime": "AWS Lambda",
            "endpoints": {
                "deal_breakdown": "/deal_breakdown [POST]",
                "partner_report": "/partner_report [POST]",
                "finalize_deal": "/finalize_deal [POST]",
                "health": "/health [GET]",
            },
        },
    )


def _run(event, action, label):
    """Parse the body and run action(input_data), mapping errors to responses."""
    try:
        input_data = parse_body(event)
        if input_data is None:
            return _response(400, {"error": "No input data provided", "status": "failed"})

        return action(input_data)

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {str(e)}")
        return _response(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from the engine (bad numbers, split types, etc.)
        logger.error(f"Validation error in {label}: {str(e)}")
        return _response(400, {"error": f"Validation error: {str(e)}", "status": "validation_failed"})

    except DealPersistenceError as e:
        logger.error(f"Persistence error in {label}: {str(e)}")
        return _response(502, {"error": "Failed to save deal record", "status": "failed"})

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected error in {label}: {str(e)}", exc_info=True)
        return _response(500, {"error": "An unexpected error occurred during processing", "status": "failed"})


def handle_deal_breakdown(event):
    """Live breakdown for a set of deal inputs."""

    def action(input_data):
        result = processor.process_from_dict(input_data)
        logger.info(f"Deal breakdown computed: gross_profit={result['calculations']['gross_profit']['value']}")
        return _response(200, result)

    return _run(event, action, "deal_breakdown")


def handle_partner_report(event):
    """Partner payout report for a persisted deal record."""

    def action(input_data):
        return _response(200, processor.partner_report(input_data))

    return _run(event, action, "partner_report")


def handle_finalize_deal(event):
    """Validate, compute and save a finalized deal."""
    client = get_backend_client()
    if client is None:
        return _response(503, {"error": "Deal storage is not configured", "status": "failed"})

    def action(input_data):
        outcome = processor.finalize(FinalizeRequest.from_dict(input_data), DealRecordStore(client))
        if not outcome.saved:
            return _response(422, {"status": "blocked", "issues": outcome.issues})
        return _response(
            200,
            {
                "status": "saved",
                "record": outcome.record,
                "sourced_count_updated": outcome.sourced_count_updated,
            },
        )

    return _run(event, action, "finalize_deal")
