from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Protocol

import httpx


# Extra wait on top of the httpx timeout before the probe is abandoned outright.
HANG_GRACE_SECONDS = 2.0


@dataclass(frozen=True)
class ProbeOutcome:
    domain: str
    status_code: int | None = None
    failure_reason: str | None = None
    elapsed_ms: float | None = None


class Probe(Protocol):
    async def probe(self, url: str, timeout: float) -> ProbeOutcome: ...


def describe_error(exc: BaseException) -> str:
    msg = str(exc or "").strip()
    if not msg:
        return type(exc).__name__
    return f"{type(exc).__name__}: {msg}"


class HttpProbe:
    """HEAD-request probe over a shared httpx client.

    Redirects are not followed so that 301/302 are reported as-is.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def probe(self, url: str, timeout: float) -> ProbeOutcome:
        started = time.perf_counter()
        try:
            resp = await asyncio.wait_for(
                self.client.head(url, follow_redirects=False, timeout=timeout),
                timeout=timeout + HANG_GRACE_SECONDS,
            )
        except asyncio.TimeoutError:
            return ProbeOutcome(
                domain=url,
                failure_reason=f"timeout after {timeout:g}s",
                elapsed_ms=_elapsed_ms(started),
            )
        except httpx.TimeoutException as e:
            return ProbeOutcome(
                domain=url,
                failure_reason=f"timeout after {timeout:g}s ({describe_error(e)})",
                elapsed_ms=_elapsed_ms(started),
            )
        except httpx.HTTPError as e:
            return ProbeOutcome(domain=url, failure_reason=describe_error(e), elapsed_ms=_elapsed_ms(started))

        return ProbeOutcome(domain=url, status_code=resp.status_code, elapsed_ms=_elapsed_ms(started))


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000.0, 3)
