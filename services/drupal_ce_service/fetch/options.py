"""Fetch option merging.

Fetch options are a plain mapping (`base_url`, `headers`, `query`, `timeout`,
`credentials`, `key`, ...). They are merged from an ordered list of layers:
module defaults first, then per-call caller options. Forwarded inbound
headers are added last, without replacing headers already present.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from copy import deepcopy
from typing import Any

FetchOptions = dict[str, Any]


def merge_option_layers(*layers: Mapping[str, Any] | None) -> FetchOptions:
    """Merge option layers left to right.

    Scalar values and lists from later layers win; nested mappings are
    merged recursively. Layers are not mutated.
    """
    merged: FetchOptions = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                merged[key] = merge_option_layers(current, value)
            else:
                merged[key] = deepcopy(value)
    return merged


def add_missing_headers(
    headers: Mapping[str, str] | None, extra: Mapping[str, str]
) -> dict[str, str]:
    """Union of two header maps; names already in `headers` are kept as is."""
    result = dict(headers or {})
    present = {name.lower() for name in result}
    for name, value in extra.items():
        if name.lower() not in present:
            result[name] = value
            present.add(name.lower())
    return result


def select_proxy_headers(
    inbound_headers: Mapping[str, str] | None, allowed: Iterable[str]
) -> dict[str, str]:
    """Pick the allowlisted headers present on the inbound request."""
    if not inbound_headers:
        return {}
    lowered = {name.lower(): value for name, value in inbound_headers.items()}
    return {name.lower(): lowered[name.lower()] for name in allowed if name.lower() in lowered}


def build_fetch_options(
    options: Mapping[str, Any] | None,
    *,
    base_url: str,
    defaults: Mapping[str, Any] | None = None,
    proxy_headers: Iterable[str] = (),
    inbound_headers: Mapping[str, str] | None = None,
) -> FetchOptions:
    """Build the options for one CMS fetch.

    Args:
        options: Per-call caller options
        base_url: Base URL used when the caller gives none
        defaults: Module default options, merged under caller options
        proxy_headers: Names of inbound headers to forward
        inbound_headers: Headers of the request being served, if any

    Returns:
        A fresh options mapping
    """
    caller = dict(options or {})
    if caller.get("base_url") is None:
        caller["base_url"] = base_url

    merged = merge_option_layers(defaults, caller)

    forwarded = select_proxy_headers(inbound_headers, proxy_headers)
    if forwarded:
        merged["headers"] = add_missing_headers(merged.get("headers"), forwarded)

    return merged


def without_cookie(cookie_header: str, name: str) -> str:
    """Remove the cookie `name` from a Cookie header value."""
    kept = [
        pair.strip()
        for pair in cookie_header.split(";")
        if pair.strip() and pair.strip().split("=", 1)[0].strip() != name
    ]
    return "; ".join(kept)
