"""Encoding chart state into URL query parameters and back."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Sequence, Set

from .axis import ScaleType
from .config import MAP_PROJECTIONS, STACK_MODES, TABS, ChartConfig
from .query_params import (
    QueryParams,
    legacy_query_params_to_current,
    query_params_to_str,
    str_to_query_params,
)
from .timebounds import format_range, format_time_bound, parse_range
from .url_binder import ObservableUrl

logger = logging.getLogger(__name__)

ENTITY_SEPARATOR = "~"
LEGACY_ENTITY_SEPARATOR = "+"


@dataclass(frozen=True)
class UrlParam:
    """
    How one query parameter maps onto a ChartConfig.

    ``encode`` returns None when the config has nothing to say for this
    parameter. ``decode`` returns False when the raw value is unusable, in
    which case it must leave the config untouched.
    """

    name: str
    encode: Callable[[ChartConfig], Optional[str]]
    decode: Callable[[ChartConfig, str], bool]


def _choice_param(name: str, attr: str, choices: Sequence[str]) -> UrlParam:
    def encode(config: ChartConfig) -> Optional[str]:
        value: Optional[str] = getattr(config, attr)
        return value

    def decode(config: ChartConfig, raw: str) -> bool:
        if raw not in choices:
            return False
        setattr(config, attr, raw)
        return True

    return UrlParam(name, encode, decode)


def _scale_param(name: str, axis_attr: str) -> UrlParam:
    def encode(config: ChartConfig) -> Optional[str]:
        axis = getattr(config, axis_attr)
        if not axis.can_change_scale_type:
            return None
        return str(axis.scale_type.value)

    def decode(config: ChartConfig, raw: str) -> bool:
        try:
            scale_type = ScaleType(raw)
        except ValueError:
            return False
        getattr(config, axis_attr).scale_type = scale_type
        return True

    return UrlParam(name, encode, decode)


def _encode_time(config: ChartConfig) -> Optional[str]:
    if config.tab == "map" and config.map.time is not None:
        return format_time_bound(config.map.time, config.year_is_day)
    if config.min_time is None and config.max_time is None:
        return None
    return format_range(config.time_bounds, config.year_is_day)


def _decode_time(config: ChartConfig, raw: str) -> bool:
    bounds = parse_range(raw, config.year_is_day)
    if bounds is None:
        return False
    config.set_time_bounds(bounds)
    config.map.time = bounds[1]
    return True


def _encode_country(config: ChartConfig) -> Optional[str]:
    codes = config.selected_entities
    if len(codes) == 1:
        # A lone code is prefixed so it never reads as the legacy "+" form
        return ENTITY_SEPARATOR + codes[0]
    return ENTITY_SEPARATOR.join(codes) if codes else ENTITY_SEPARATOR


def _decode_country(config: ChartConfig, raw: str) -> bool:
    separator = (
        ENTITY_SEPARATOR if ENTITY_SEPARATOR in raw else LEGACY_ENTITY_SEPARATOR
    )
    config.select_entities(code for code in raw.split(separator) if code)
    return True


def _encode_region(config: ChartConfig) -> Optional[str]:
    return config.map.projection


def _decode_region(config: ChartConfig, raw: str) -> bool:
    if raw not in MAP_PROJECTIONS:
        return False
    config.map.projection = raw
    return True


DEFAULT_URL_PARAMS: List[UrlParam] = [
    _choice_param("tab", "tab", TABS),
    _choice_param("stackMode", "stack_mode", STACK_MODES),
    _scale_param("xScale", "x_axis"),
    _scale_param("yScale", "y_axis"),
    UrlParam("time", _encode_time, _decode_time),
    UrlParam("country", _encode_country, _decode_country),
    UrlParam("region", _encode_region, _decode_region),
]


class ChartUrl(ObservableUrl):
    """
    Query-parameter view of a ChartConfig.

    The config as passed in is the default configuration: parameters equal
    to it are dropped from ``params`` unless ``drop_unchanged_params`` is
    False. Parameters supplied in ``query_str`` at construction are kept even
    when they match the default, so a value the caller asked for explicitly
    stays in the URL.
    """

    def __init__(
        self,
        config: ChartConfig,
        query_str: Optional[str] = None,
        url_params: Optional[Sequence[UrlParam]] = None,
    ):
        self.config = config
        self.url_params = list(
            DEFAULT_URL_PARAMS if url_params is None else url_params
        )
        self.debounce_mode = False
        self._defaults = config.copy()
        self._drop_unchanged_params = True
        self._explicit_params: Set[str] = set()
        self._observers: List[Callable[[QueryParams], None]] = []
        self._last_params: Optional[QueryParams] = None
        self._config_disposer: Optional[Callable[[], None]] = None

        self.original_query_str = query_str or ""
        if query_str:
            applied = self.populate_from_query_params(str_to_query_params(query_str))
            self._explicit_params = set(applied)

    @property
    def drop_unchanged_params(self) -> bool:
        return self._drop_unchanged_params

    @drop_unchanged_params.setter
    def drop_unchanged_params(self, value: bool) -> None:
        self._drop_unchanged_params = value
        self._publish()

    @property
    def params(self) -> QueryParams:
        """Query parameters for the current state of the config."""
        params: QueryParams = {}
        for url_param in self.url_params:
            current = url_param.encode(self.config)
            if current is None:
                continue
            if (
                not self._drop_unchanged_params
                or url_param.name in self._explicit_params
                or current != url_param.encode(self._defaults)
            ):
                params[url_param.name] = current
        return params

    @property
    def query_str(self) -> str:
        return query_params_to_str(self.params)

    @property
    def base_url(self) -> Optional[str]:
        if self.config.is_published and self.config.slug:
            return f"/grapher/{self.config.slug}"
        return None

    @property
    def url(self) -> str:
        return f"{self.base_url or ''}{self.query_str}"

    def populate_from_query_params(self, params: Mapping[str, str]) -> List[str]:
        """
        Apply query parameters onto the config.

        Legacy names are upgraded first. Missing, empty and malformed values
        leave the config as it is. Returns the names of the parameters that
        were applied.
        """
        params = legacy_query_params_to_current(params)
        applied = []
        for url_param in self.url_params:
            raw = params.get(url_param.name)
            if not raw:
                continue
            if url_param.decode(self.config, raw):
                applied.append(url_param.name)
            else:
                logger.debug(f"Ignoring invalid {url_param.name} value: {raw!r}")
        return applied

    def observe(self, callback: Callable[[QueryParams], None]) -> Callable[[], None]:
        """Call callback with the new params whenever they change."""
        if self._config_disposer is None:
            self._last_params = self.params
            self._config_disposer = self.config.subscribe(
                lambda path: self._publish()
            )
        self._observers.append(callback)

        def dispose() -> None:
            if callback in self._observers:
                self._observers.remove(callback)
            if not self._observers and self._config_disposer:
                self._config_disposer()
                self._config_disposer = None

        return dispose

    def _publish(self) -> None:
        if not self._observers:
            return
        params = self.params
        if params == self._last_params:
            return
        self._last_params = params
        for callback in list(self._observers):
            callback(params)
