from __future__ import annotations
import httpx

USER_AGENT = "job-location-pipeline/1.0"


def post_json(
    url: str,
    payload: dict,
    headers: dict | None = None,
    timeout: float = 30,
    transport: httpx.BaseTransport | None = None,
) -> dict:
    merged = {"User-Agent": USER_AGENT, "Content-Type": "application/json", **(headers or {})}
    with httpx.Client(timeout=timeout, headers=merged, transport=transport) as client:
        resp = client.post(url, json=payload)
        resp.raise_for_status()
        return resp.json()


def get_json(
    url: str,
    params: dict,
    timeout: float = 30,
    transport: httpx.BaseTransport | None = None,
) -> dict:
    with httpx.Client(timeout=timeout, headers={"User-Agent": USER_AGENT}, transport=transport) as client:
        resp = client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()
