"""
State manager API errors.

The underlying client library (now, ``aiohttp``) can be replaced in the future.
We cannot rely on embedding its exceptions all over the code and in the users'
code. Hence, we have our own hierarchy of exceptions for the API errors.

The original errors of the client library are chained as the causes of our own
specialised errors -- for better explainability of errors in the stack traces.

Some selected HTTP statuses are made into their own classes, so that they
could be intercepted and handled in the callers: e.g. the "not found" errors,
which are turned into the "absent" results when fetching a resource.
All other non-2xx statuses are raised as `APIServerError`.

The errors that happen before any response is obtained (connectivity issues,
timeouts, unserialisable payloads) are `APITransportError` and its descendants.
The only exception is the task cancellation: it is never converted,
so that ``asyncio`` can stop the task as intended.
"""
import collections.abc
import json
from typing import Any, Optional


class StateManagerError(Exception):
    """ The root of all errors raised by the state manager client. """


class APIError(StateManagerError):
    """ A non-2xx HTTP response from the API. """

    def __init__(
            self,
            message: Optional[str],
            *,
            status: int,
            payload: Optional[object] = None,
    ) -> None:
        super().__init__(message, status)
        self._status = status
        self._message = message
        self._payload = payload

    def __str__(self) -> str:
        return f"{self.title}: {self._message or ''} (code {self._status})"

    @property
    def title(self) -> str:
        return "state-manager: error"

    @property
    def status(self) -> int:
        return self._status

    @property
    def message(self) -> Optional[str]:
        return self._message

    @property
    def payload(self) -> Optional[object]:
        return self._payload


class APIBadInputError(APIError):
    @property
    def title(self) -> str:
        return "state-manager: bad input"


class APINotFoundError(APIError):
    @property
    def title(self) -> str:
        return "state-manager: not found"


class APIConflictError(APIError):
    @property
    def title(self) -> str:
        return "state-manager: conflict"


class APIServerError(APIError):
    @property
    def title(self) -> str:
        return "state-manager: internal error"


class APITransportError(StateManagerError):
    """ No response was obtained: the request failed before or while sending. """


class APIEncodeError(APITransportError):
    """ The request's payload cannot be serialised to JSON. """


class APITimeoutError(APITransportError):
    """ The request's deadline has elapsed before the response was received. """


class APIDecodeError(StateManagerError):
    """ A successful response carries a payload which cannot be decoded. """

    def __init__(self, message: str, *, status: int, text: Optional[str] = None) -> None:
        super().__init__(message, status)
        self.status = status
        self.text = text

    def __str__(self) -> str:
        return f"state-manager: malformed response: {self.args[0]} (code {self.status})"


class PaginationError(StateManagerError):
    """
    A page of a paginated listing has failed; the earlier pages are discarded.

    The original error is chained as the cause (``__cause__``).
    """

    def __init__(self, *, offset: int, limit: int) -> None:
        super().__init__(offset, limit)
        self.offset = offset
        self.limit = limit

    def __str__(self) -> str:
        cause = f": {self.__cause__}" if self.__cause__ is not None else ""
        return f"state-manager: listing failed at offset {self.offset} (limit {self.limit}){cause}"


def extract_message(raw: bytes) -> Optional[str]:
    """
    Extract the diagnostic text from an error body, on the best-effort basis.

    The API sends ``{"error": "..."}``, but proxies and crashed servers can send
    anything: HTML, plain text, truncated or irrelevant JSON. Nothing fails here:
    if the expected field is absent, the whole body's text is the message.
    """
    text = raw.decode('utf-8', errors='replace').strip()
    try:
        payload = json.loads(text)
    except ValueError:
        payload = None
    if isinstance(payload, collections.abc.Mapping):
        for field in ['error', 'message']:
            value = payload.get(field)
            if isinstance(value, str):
                return value
    return text or None


def check_response(
        status: int,
        raw: bytes,
) -> None:
    """
    Check for the API errors, and raise with the extracted information.
    """
    if 200 <= status < 300:
        return

    cls = (
        APIBadInputError if status == 400 else
        APINotFoundError if status == 404 else
        APIConflictError if status == 409 else
        APIServerError
    )

    payload: Optional[object]
    try:
        payload = json.loads(raw)
    except ValueError:
        payload = None

    raise cls(extract_message(raw), status=status, payload=payload)


def parse_response(
        status: int,
        raw: bytes,
        *,
        expect_body: bool = True,
) -> Any:
    """
    Check the response for errors, and either raise or return the parsed data.

    Nothing is parsed if no data are expected, or if there are no data at all.
    """
    check_response(status, raw)
    if not expect_body or status == 204 or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        text = raw.decode('utf-8', errors='replace')
        raise APIDecodeError(str(e), status=status, text=text) from e
