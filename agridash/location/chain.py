"""
Provider fallback chain runner.

A chain is an ordered list of ProviderStep records evaluated by run_chain().
Each step issues one provider call, the outcome is classified, and the runner
either returns the normalized entity or advances to the next step. Chain
order is plain data, so it can be tested without any network access.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, FrozenSet, List, Optional, Sequence

import requests
from prometheus_client import Counter

from agridash.errors import ChainExhaustedError, NotFoundError

logger = logging.getLogger(__name__)

PROVIDER_ATTEMPTS = Counter(
    "provider_attempts_total",
    "Provider calls made by fallback chains",
    ["category", "provider", "outcome"],
)


class Outcome(str, Enum):
    SUCCESS = "success"
    AUTH_FAILURE = "authFailure"
    RATE_LIMITED = "rateLimited"
    NOT_FOUND = "notFound"
    MALFORMED = "malformed"
    NETWORK_ERROR = "networkError"


class MissingCredentialsError(Exception):
    """A keyed provider was asked for data but no key is configured."""


class MalformedPayload(Exception):
    """A 2xx body that carries none of the fields an adapter needs."""


class EmptyResult(Exception):
    """A 2xx body with an empty result set."""

    def __init__(self, message: str = "empty result set", suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.suggestions = list(suggestions or [])


@dataclass(frozen=True)
class ProviderStep:
    """
    One provider attempt inside a chain.

    request: target -> requests.Response (raises MissingCredentialsError
        when the provider key is absent)
    adapt: (decoded JSON, target) -> canonical entity; raises
        MalformedPayload or EmptyResult instead of returning partial data
    stop_on: outcomes that end the whole chain instead of falling through
    """
    provider_id: str
    request: Callable[[Any], requests.Response]
    adapt: Callable[[Any, Any], Any]
    stop_on: FrozenSet[Outcome] = frozenset()


@dataclass
class ProviderAttempt:
    provider_id: str
    outcome: Outcome
    status_code: Optional[int] = None
    detail: str = ""
    raw_response: Any = None
    suggestions: List[str] = field(default_factory=list)

    def describe(self) -> str:
        status = f" (HTTP {self.status_code})" if self.status_code else ""
        detail = f": {self.detail}" if self.detail else ""
        return f"{self.provider_id} returned {self.outcome.value}{status}{detail}"


def classify_response(response: requests.Response) -> Outcome:
    """Classify an HTTP response by status code alone."""
    status = response.status_code
    if status in (401, 403):
        return Outcome.AUTH_FAILURE
    if status == 429:
        return Outcome.RATE_LIMITED
    if status == 404:
        return Outcome.NOT_FOUND
    if not 200 <= status < 300:
        return Outcome.NETWORK_ERROR
    return Outcome.SUCCESS


def _attempt(
    step: ProviderStep,
    target: Any,
    classify: Callable[[requests.Response], Outcome],
):
    """Run a single step. Returns (ProviderAttempt, entity or None)."""
    try:
        response = step.request(target)
    except MissingCredentialsError as e:
        return ProviderAttempt(step.provider_id, Outcome.AUTH_FAILURE, detail=str(e)), None
    except requests.exceptions.RequestException as e:
        return ProviderAttempt(step.provider_id, Outcome.NETWORK_ERROR, detail=str(e)), None

    status = response.status_code
    outcome = classify(response)
    if outcome is not Outcome.SUCCESS:
        return ProviderAttempt(step.provider_id, outcome, status_code=status), None

    try:
        payload = response.json()
    except ValueError as e:
        return ProviderAttempt(
            step.provider_id, Outcome.MALFORMED, status_code=status,
            detail=f"undecodable body: {e}",
        ), None

    try:
        entity = step.adapt(payload, target)
    except EmptyResult as e:
        return ProviderAttempt(
            step.provider_id, Outcome.NOT_FOUND, status_code=status,
            detail=str(e), raw_response=payload, suggestions=e.suggestions,
        ), None
    except MalformedPayload as e:
        return ProviderAttempt(
            step.provider_id, Outcome.MALFORMED, status_code=status,
            detail=str(e), raw_response=payload,
        ), None
    except (KeyError, IndexError, TypeError, ValueError) as e:
        # Payload shape the adapter did not expect
        logger.debug("%s adapter failed", step.provider_id, exc_info=True)
        return ProviderAttempt(
            step.provider_id, Outcome.MALFORMED, status_code=status,
            detail=f"unexpected payload shape: {e!r}", raw_response=payload,
        ), None

    return ProviderAttempt(
        step.provider_id, Outcome.SUCCESS, status_code=status, raw_response=payload,
    ), entity


def run_chain(
    category: str,
    steps: Sequence[ProviderStep],
    target: Any,
    classify: Callable[[requests.Response], Outcome] = classify_response,
) -> Any:
    """
    Evaluate `steps` in order and return the first normalized entity.

    Args:
        category: Chain name used in logs, metrics and error messages.
        steps: Ordered provider steps; each runs at most once.
        target: Argument handed to every step (a Location or a query string).
        classify: Maps an HTTP response to an Outcome.

    Raises:
        NotFoundError: A step whose stop_on includes notFound found nothing.
        ChainExhaustedError: Every step failed.
    """
    attempts: List[ProviderAttempt] = []

    for step in steps:
        attempt, entity = _attempt(step, target, classify)
        attempts.append(attempt)
        PROVIDER_ATTEMPTS.labels(
            category=category, provider=step.provider_id, outcome=attempt.outcome.value,
        ).inc()

        if attempt.outcome is Outcome.SUCCESS:
            logger.info("%s chain served by %s", category, step.provider_id)
            return entity

        logger.warning("%s chain: %s", category, attempt.describe())

        if attempt.outcome in step.stop_on:
            if attempt.outcome is Outcome.NOT_FOUND:
                raise NotFoundError(
                    "Not found", detail=attempt.describe(), suggestions=attempt.suggestions,
                )
            break

    last = attempts[-1].describe() if attempts else "no providers configured"
    raise ChainExhaustedError(category, detail=last, attempts=attempts)
