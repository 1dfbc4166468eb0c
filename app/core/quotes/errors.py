"""
Error taxonomy for quote aggregation.

Upstream error bodies are not a stable contract, so classification relies on
status codes plus a handful of message substrings. Each provider gets its own
classifier so the heuristics can change without touching the adapters.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx


class ErrorKind(str, Enum):
    """Kinds of per-cell quote failures shown in the result matrix."""

    INVALID_AMOUNT = "InvalidAmount"
    INVALID_AMOUNT_FORMAT = "InvalidAmountFormat"
    RATE_LIMITED = "RateLimited"
    ROUTE_NOT_FOUND = "RouteNotFound"
    NO_LIQUIDITY = "NoLiquidity"
    BAD_REQUEST = "BadRequest"
    UPSTREAM_SERVER_ERROR = "UpstreamServerError"
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    NO_QUOTE_AVAILABLE = "NoQuoteAvailable"
    UNKNOWN_UPSTREAM_ERROR = "UnknownUpstreamError"


@dataclass(frozen=True)
class ErrorClassification:
    kind: ErrorKind
    label: str
    detail: str


class InvalidAmountError(ValueError):
    """USD notional cannot be converted into a positive token amount."""


class InvalidQuoteRequest(ValueError):
    """Aggregation request is structurally invalid (bad pair or checkpoints)."""


def _parse_error_body(text: str) -> Optional[Dict[str, Any]]:
    try:
        payload = json.loads(text)
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _message_of(payload: Dict[str, Any]) -> str:
    message = payload.get("message") or payload.get("error") or ""
    return message if isinstance(message, str) else json.dumps(message)


def classify_lifi_error(status: int, body: str) -> ErrorClassification:
    """Classify a non-2xx response from the LI.FI quote endpoint."""
    payload = _parse_error_body(body)
    if payload is None:
        if status == 429:
            return ErrorClassification(ErrorKind.RATE_LIMITED, "Rate limited", body)
        if status == 404:
            return ErrorClassification(ErrorKind.ROUTE_NOT_FOUND, "No routes found", body)
        if status == 400:
            return ErrorClassification(ErrorKind.BAD_REQUEST, "Bad request", body)
        if status == 500:
            return ErrorClassification(ErrorKind.UPSTREAM_SERVER_ERROR, f"Server error ({status})", body)
        if status == 503:
            return ErrorClassification(ErrorKind.UPSTREAM_UNAVAILABLE, f"Service unavailable ({status})", body)
        return ErrorClassification(ErrorKind.UNKNOWN_UPSTREAM_ERROR, f"Error {status}", body)

    message = _message_of(payload)
    detail = message or body

    if status == 429:
        return ErrorClassification(ErrorKind.RATE_LIMITED, "Rate limited - please wait", detail)
    if status == 404:
        if "No available quotes" in message:
            return ErrorClassification(ErrorKind.ROUTE_NOT_FOUND, "No routes available", detail)
        if "Price impact" in message:
            return ErrorClassification(ErrorKind.NO_LIQUIDITY, "Amount too large", detail)
        return ErrorClassification(ErrorKind.ROUTE_NOT_FOUND, "Route not found", detail)
    if status == 400:
        if "isBigNumberish" in message:
            return ErrorClassification(ErrorKind.INVALID_AMOUNT_FORMAT, "Invalid amount format", detail)
        return ErrorClassification(ErrorKind.BAD_REQUEST, "Invalid request", detail)
    if status == 500:
        return ErrorClassification(ErrorKind.UPSTREAM_SERVER_ERROR, f"Server error ({status})", detail)
    if status == 503:
        return ErrorClassification(ErrorKind.UPSTREAM_UNAVAILABLE, f"Service unavailable ({status})", detail)
    return ErrorClassification(ErrorKind.UNKNOWN_UPSTREAM_ERROR, f"Service unavailable ({status})", detail)


def classify_bungee_error(status: int, body: str) -> ErrorClassification:
    """Classify a non-2xx response from the Bungee quote endpoint."""
    payload = _parse_error_body(body)
    if payload is None:
        if status == 429:
            return ErrorClassification(ErrorKind.RATE_LIMITED, "Rate limited", body)
        if status == 400:
            return ErrorClassification(ErrorKind.BAD_REQUEST, "Bad request", body)
        if status == 404:
            return ErrorClassification(ErrorKind.ROUTE_NOT_FOUND, "Not found", body)
        if status == 500:
            return ErrorClassification(ErrorKind.UPSTREAM_SERVER_ERROR, "Server error", body)
        if status == 503:
            return ErrorClassification(ErrorKind.UPSTREAM_UNAVAILABLE, "Service unavailable", body)
        return ErrorClassification(ErrorKind.UNKNOWN_UPSTREAM_ERROR, "Service unavailable", body)

    message = _message_of(payload)
    detail = message or body

    if status == 429:
        return ErrorClassification(ErrorKind.RATE_LIMITED, "Rate limited - please wait", detail)
    if status == 400:
        if "BigNumberish" in message:
            return ErrorClassification(ErrorKind.INVALID_AMOUNT_FORMAT, "Invalid amount format", detail)
        if "fromAmount" in message:
            return ErrorClassification(ErrorKind.INVALID_AMOUNT_FORMAT, "Amount validation failed", detail)
        return ErrorClassification(ErrorKind.BAD_REQUEST, "Invalid request parameters", detail)
    if status == 404:
        return ErrorClassification(ErrorKind.ROUTE_NOT_FOUND, "Route not available", detail)
    if status == 500:
        if "BigNumberish" in message:
            return ErrorClassification(ErrorKind.UPSTREAM_SERVER_ERROR, "Amount processing error", detail)
        return ErrorClassification(ErrorKind.UPSTREAM_SERVER_ERROR, "Server error", detail)
    if status == 503:
        return ErrorClassification(ErrorKind.UPSTREAM_UNAVAILABLE, "Service unavailable", detail)
    return ErrorClassification(ErrorKind.UNKNOWN_UPSTREAM_ERROR, "Service unavailable", detail)


def classify_transport_error(exc: httpx.RequestError) -> ErrorClassification:
    """Timeouts and connection failures both mean the upstream is unreachable."""
    if isinstance(exc, httpx.TimeoutException):
        return ErrorClassification(ErrorKind.UPSTREAM_UNAVAILABLE, "Request timed out", str(exc) or "timeout")
    return ErrorClassification(ErrorKind.UPSTREAM_UNAVAILABLE, "Service unavailable", str(exc) or type(exc).__name__)
