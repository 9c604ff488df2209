"""
AWS Lambda handler for the F&I Deal Financial Engine API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import base64
import json
import logging
import os

from fi_engine import DealEngine

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Environment (dev, staging, prod)
ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

# Initialize engine (reused across warm invocations)
engine = DealEngine()

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}

ENDPOINTS = {
    "process_deals": "/process_deals [POST]",
    "health": "/health [GET]",
}


def respond(status_code, payload):
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return {"statusCode": status_code, "headers": CORS_HEADERS, "body": body}


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Accepts both REST API (httpMethod/path) and HTTP API
    (requestContext.http.method/rawPath) event shapes.
    """
    method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    path = event.get("path") or event.get("rawPath", "")

    if method == "OPTIONS":
        return respond(200, "")

    if (method, path) == ("GET", "/health"):
        return respond(200, {"status": "healthy", "environment": ENVIRONMENT})
    if (method, path) == ("GET", "/api"):
        return respond(200, {
            "status": "ok",
            "message": "F&I Deal Financial Engine API",
            "version": "1.0",
            "environment": ENVIRONMENT,
            "runtime": "AWS Lambda",
            "endpoints": ENDPOINTS,
        })
    if (method, path) == ("POST", "/process_deals"):
        return handle_process_deals(event)

    return respond(404, {"error": "Not found", "path": path})


def read_request(event):
    """
    Decode the posted deal request.

    Returns None for an empty body. Raises json.JSONDecodeError for
    malformed JSON and ValueError when the request carries no deals list.
    """
    body = event.get("body")
    if body is None or body == "":
        return None
    if isinstance(body, str):
        if event.get("isBase64Encoded"):
            body = base64.b64decode(body).decode("utf-8")
        body = json.loads(body)

    if not isinstance(body, dict):
        raise ValueError("Request body must be an object")
    if not isinstance(body.get("deals"), list):
        raise ValueError("deals must be a list of records")
    return body


def handle_process_deals(event):
    """Run an aggregation pass over the posted deals."""
    try:
        request = read_request(event)
        if request is None:
            return respond(400, {"error": "No input data provided", "status": "failed"})

        deal_count = len(request["deals"])
        view = {key: request[key] for key in ("period", "status", "search", "sort") if request.get(key)}
        logger.info(f"Processing {deal_count} deals {view or ''}".rstrip())

        result = engine.process_from_dict(request)

        logger.info(f"Deals processed: {deal_count}, rows returned: {len(result['deals'])}")
        return respond(200, result)

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {str(e)}")
        return respond(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    except (ValueError, KeyError, TypeError) as e:
        # Contract violations: bad deals list, unknown period, status or sort
        logger.error(f"Validation error: {str(e)}")
        return respond(400, {"error": f"Validation error: {str(e)}", "status": "validation_failed"})

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected processing error: {str(e)}", exc_info=True)
        return respond(500, {"error": "An unexpected error occurred during processing", "status": "failed"})
