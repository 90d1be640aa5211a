import json
import logging

SENSITIVE_REQUEST_HEADERS = ['authorization', 'cookie']
SENSITIVE_RESPONSE_HEADERS = ['set-cookie', 'authorization']
MAX_BODY_LOG_LENGTH = 500

logger = logging.getLogger(__name__)


def _format_body(body):
    try:
        # Truncate body if too large
        body_str = json.dumps(body, ensure_ascii=False) if isinstance(body, (dict, list)) else str(body)
        if len(body_str) > MAX_BODY_LOG_LENGTH:
            body_str = body_str[:MAX_BODY_LOG_LENGTH] + "...[truncated]"
        return f" Body: {body_str}"
    except (TypeError, ValueError):
        return f" Body: [binary data, {len(body) if body else 0} bytes]"


def log_request(method, path, headers=None, body=None):
    """Log incoming request details"""
    log_msg = f"{method} {path}"

    if headers:
        filtered_headers = {k: v for k, v in headers.items()
                            if k.lower() not in SENSITIVE_REQUEST_HEADERS}
        if filtered_headers:
            log_msg += f" Headers: {json.dumps(filtered_headers)}"

    # Request bodies carry passwords and stored values; log field names only
    if isinstance(body, dict) and body:
        log_msg += f" Fields: {', '.join(sorted(str(name) for name in body))}"

    logger.info(log_msg)


def log_response(status_code, method=None, path=None, headers=None, body=None, latency_ms=None):
    """Log outgoing response details"""
    log_msg = f"Response {status_code}"
    if method and path:
        log_msg += f" for {method} {path}"
    if latency_ms is not None:
        log_msg += f" ({latency_ms}ms)"

    if headers:
        filtered_headers = {k: v for k, v in headers.items()
                            if k.lower() not in SENSITIVE_RESPONSE_HEADERS}
        if filtered_headers:
            log_msg += f" Headers: {json.dumps(filtered_headers)}"

    if body:
        log_msg += _format_body(body)

    if status_code >= 500:
        logger.error(log_msg)
    else:
        logger.info(log_msg)
