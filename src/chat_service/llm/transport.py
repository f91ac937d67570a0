from typing import Any, Optional

import httpx

from ..errors import (
    UpstreamMalformedResponseError,
    UpstreamRequestError,
    UpstreamServerError,
    UpstreamTimeoutError,
)


async def post_json(
    base_url: str,
    path: str,
    payload: dict[str, Any],
    *,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Any:
    """
    POST a JSON body and return the decoded JSON reply.

    Transport failures are translated into the upstream error taxonomy so
    the retry loop can tell transient failures from contract breaks.
    """
    try:
        async with httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        ) as client:
            response = await client.post(path, json=payload)
    except httpx.TimeoutException as exc:
        raise UpstreamTimeoutError(f"Request to {base_url}{path} timed out") from exc
    except httpx.RequestError as exc:
        raise UpstreamRequestError(f"Request to {base_url}{path} failed: {exc}") from exc

    if response.status_code >= 500:
        raise UpstreamServerError(
            response.status_code,
            f"Completion backend returned {response.status_code}: {response.text[:300]}",
        )
    if not response.is_success:
        raise UpstreamRequestError(
            f"Completion backend returned {response.status_code}: {response.text[:300]}"
        )

    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamMalformedResponseError(
            "Completion backend returned a body that is not valid JSON"
        ) from exc
