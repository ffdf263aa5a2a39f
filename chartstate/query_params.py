"""Query string helpers and legacy parameter upgrades."""

from typing import Dict, Mapping, Optional
from urllib.parse import quote, unquote

QueryParams = Dict[str, str]


def str_to_query_params(query_str: Optional[str]) -> QueryParams:
    """
    Parse a query string (with or without the leading "?") into a mapping.

    Values are percent-decoded but "+" is kept literally, since older URLs
    use it as a list separator. Blank values are kept; the last duplicate wins.
    """
    params: QueryParams = {}
    if not query_str:
        return params

    for segment in query_str.lstrip("?").split("&"):
        if not segment:
            continue
        key, _, value = segment.partition("=")
        params[unquote(key)] = unquote(value)

    return params


def query_params_to_str(params: Mapping[str, str]) -> str:
    """Serialize a mapping to "?k=v&..." or "" when empty."""
    if not params:
        return ""
    pairs = [
        f"{quote(key, safe='~')}={quote(value, safe='~')}"
        for key, value in params.items()
    ]
    return "?" + "&".join(pairs)


def merge_query_str(*query_strs: Optional[str]) -> str:
    """Merge query strings left to right; later values override earlier keys."""
    merged: QueryParams = {}
    for query_str in query_strs:
        merged.update(str_to_query_params(query_str))
    return query_params_to_str(merged)


def legacy_query_params_to_current(params: Mapping[str, str]) -> QueryParams:
    """
    Upgrade legacy parameter names to their current equivalents.

    - ``year`` becomes ``time`` unless ``time`` is already present, in which
      case ``year`` is dropped.
    - ``scaleType`` applies to ``xScale`` and ``yScale`` where those are absent.

    Values are copied verbatim; they are parsed later by the codec.
    """
    upgraded = dict(params)

    year = upgraded.pop("year", None)
    if year is not None and "time" not in upgraded:
        upgraded["time"] = year

    scale_type = upgraded.pop("scaleType", None)
    if scale_type is not None:
        upgraded.setdefault("xScale", scale_type)
        upgraded.setdefault("yScale", scale_type)

    return upgraded
