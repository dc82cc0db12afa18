import logging
import time

import requests

from . import config
from .errors import VerificationFailure

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def get_json(params, *, endpoint=None, timeout=None, max_retries=None, session=None):
    """
    GET a MediaWiki API endpoint and return the decoded JSON object.

    Retries with exponential backoff on rate limiting, server errors and
    transport errors, then raises VerificationFailure.
    """
    endpoint = endpoint or config.API_ENDPOINT
    timeout = config.API_TIMEOUT if timeout is None else timeout
    max_retries = config.VERIFY_MAX_RETRIES if max_retries is None else max_retries
    http = session or requests
    query = dict(params)
    query.setdefault("format", "json")
    last_error = None
    for attempt in range(max_retries + 1):
        if attempt:
            sleep_for = config.VERIFY_BACKOFF_SECONDS * 2 ** (attempt - 1)
            time.sleep(sleep_for)
        try:
            response = http.get(endpoint, headers=config.HEADERS, params=query, timeout=timeout)
        except requests.RequestException as exc:
            last_error = f"{type(exc).__name__}: {exc}"
            logger.warning("[!] Request to %s failed (attempt %s): %s", endpoint, attempt + 1, last_error)
            continue
        if response.status_code == 200:
            try:
                payload = response.json()
            except ValueError as exc:
                raise VerificationFailure("Malformed JSON from Wikidata API", {"error": str(exc)}) from exc
            if not isinstance(payload, dict):
                raise VerificationFailure("Unexpected payload from Wikidata API", {"payload": payload})
            return payload
        last_error = f"HTTP {response.status_code}"
        if response.status_code not in _RETRYABLE_STATUS:
            break
        logger.warning("[!] %s from %s (attempt %s).", last_error, endpoint, attempt + 1)
    raise VerificationFailure(f"Wikidata API unavailable: {last_error}", {"params": query})


class ClaimVerifier:
    """Checks the live knowledge base for an already recorded claim."""

    def __init__(self, endpoint=None, timeout=None, max_retries=None, session=None):
        self.endpoint = endpoint
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session

    def has_existing_claim(self, qid, property_id):
        params = {"action": "wbgetclaims", "entity": qid, "property": property_id}
        data = get_json(
            params,
            endpoint=self.endpoint,
            timeout=self.timeout,
            max_retries=self.max_retries,
            session=self.session,
        )
        if "error" in data:
            error = data["error"]
            raise VerificationFailure(
                f"wbgetclaims rejected {qid}",
                {"code": error.get("code") if isinstance(error, dict) else error},
            )
        claims = data.get("claims")
        # An empty claim map comes back as [] from the API.
        if not claims:
            return False
        if not isinstance(claims, dict):
            raise VerificationFailure(f"Malformed claims for {qid}", {"claims": claims})
        existing = claims.get(property_id) or []
        if not isinstance(existing, list):
            raise VerificationFailure(f"Malformed {property_id} claims for {qid}", {"claims": existing})
        return len(existing) > 0
