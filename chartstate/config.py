"""Chart configuration: the stateful object the URL codec reads and writes."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .axis import AxisConfig, ScaleType
from .observable import Observable
from .timebounds import (
    TimeBound,
    TimeBoundValue,
    TimeBounds,
    is_representable_day,
    time_bound_from_json,
    time_bound_to_json,
)

TABS = ["chart", "map", "table", "sources"]
STACK_MODES = ["absolute", "relative"]
MAP_PROJECTIONS = [
    "World",
    "Africa",
    "NorthAmerica",
    "SouthAmerica",
    "Asia",
    "Europe",
    "Oceania",
]


@dataclass
class MapConfig(Observable):
    """Map tab settings."""

    time: Optional[TimeBound] = None
    projection: str = "World"


@dataclass
class ChartConfig(Observable):
    """
    Persistent and interactive state of a chart.

    ``year_is_day`` is the time-display mode of the dataset being shown: when
    true, time values are day offsets rendered as calendar dates.
    """

    slug: Optional[str] = None
    is_published: bool = False
    tab: str = "chart"
    stack_mode: str = "absolute"
    min_time: Optional[TimeBound] = None
    max_time: Optional[TimeBound] = None
    year_is_day: bool = False
    selected_entities: List[str] = field(default_factory=list)
    x_axis: AxisConfig = field(default_factory=AxisConfig)
    y_axis: AxisConfig = field(default_factory=AxisConfig)
    map: MapConfig = field(default_factory=MapConfig)

    @property
    def time_bounds(self) -> TimeBounds:
        """Time range with unset bounds replaced by their sentinels."""
        start = (
            TimeBoundValue.UNBOUNDED_LEFT if self.min_time is None else self.min_time
        )
        end = (
            TimeBoundValue.UNBOUNDED_RIGHT if self.max_time is None else self.max_time
        )
        return (start, end)

    def set_time_bounds(self, bounds: TimeBounds) -> None:
        self.min_time, self.max_time = bounds

    def select_entities(self, codes: Iterable[str]) -> None:
        self.selected_entities = list(codes)

    def toggle_entity(self, code: str) -> None:
        if code in self.selected_entities:
            self.selected_entities = [c for c in self.selected_entities if c != code]
        else:
            self.selected_entities = self.selected_entities + [code]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON config shape, omitting default values."""
        obj: Dict[str, Any] = {}
        defaults = ChartConfig()

        if self.slug is not None:
            obj["slug"] = self.slug
        if self.is_published:
            obj["isPublished"] = True
        if self.tab != defaults.tab:
            obj["tab"] = self.tab
        if self.stack_mode != defaults.stack_mode:
            obj["stackMode"] = self.stack_mode
        if self.min_time is not None:
            obj["minTime"] = time_bound_to_json(self.min_time)
        if self.max_time is not None:
            obj["maxTime"] = time_bound_to_json(self.max_time)
        if self.year_is_day:
            obj["yearIsDay"] = True
        if self.selected_entities:
            obj["selectedEntities"] = list(self.selected_entities)

        for key, axis in (("xAxis", self.x_axis), ("yAxis", self.y_axis)):
            axis_obj = _axis_to_dict(axis)
            if axis_obj:
                obj[key] = axis_obj

        map_obj = _map_to_dict(self.map)
        if map_obj:
            obj["map"] = map_obj

        return obj

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChartConfig":
        return validate_config(data)

    def copy(self) -> "ChartConfig":
        """Detached copy with no subscribers."""
        return ChartConfig.from_dict(self.to_dict())


def _axis_to_dict(axis: AxisConfig) -> Dict[str, Any]:
    obj: Dict[str, Any] = {}
    if axis.scale_type != ScaleType.LINEAR:
        obj["scaleType"] = axis.scale_type.value
    if axis.can_change_scale_type:
        obj["canChangeScaleType"] = True
    if axis.min is not None:
        obj["min"] = axis.min
    if axis.max is not None:
        obj["max"] = axis.max
    return obj


def _map_to_dict(map_config: MapConfig) -> Dict[str, Any]:
    obj: Dict[str, Any] = {}
    if map_config.time is not None:
        obj["time"] = time_bound_to_json(map_config.time)
    if map_config.projection != "World":
        obj["projection"] = map_config.projection
    return obj


def load_config(config_path: Path) -> ChartConfig:
    """Load and validate a chart configuration from a JSON file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        data = json.load(f)

    return validate_config(data)


def validate_config(data: Dict[str, Any]) -> ChartConfig:
    """Validate configuration data and return a ChartConfig instance."""
    if not isinstance(data, dict):
        raise ValueError("Chart configuration must be a JSON object")

    tab = data.get("tab", "chart")
    if tab not in TABS:
        raise ValueError(f"Invalid tab: {tab}. Must be one of: {TABS}")

    stack_mode = data.get("stackMode", "absolute")
    if stack_mode not in STACK_MODES:
        raise ValueError(
            f"Invalid stackMode: {stack_mode}. Must be one of: {STACK_MODES}"
        )

    selected = data.get("selectedEntities", [])
    if not isinstance(selected, list) or not all(
        isinstance(code, str) for code in selected
    ):
        raise ValueError("selectedEntities must be a list of entity codes")

    year_is_day = bool(data.get("yearIsDay", False))

    return ChartConfig(
        slug=data.get("slug"),
        is_published=bool(data.get("isPublished", False)),
        tab=tab,
        stack_mode=stack_mode,
        min_time=_validate_time_bound(data, "minTime", year_is_day),
        max_time=_validate_time_bound(data, "maxTime", year_is_day),
        year_is_day=year_is_day,
        selected_entities=list(selected),
        x_axis=_validate_axis_section(data.get("xAxis", {}), "xAxis"),
        y_axis=_validate_axis_section(data.get("yAxis", {}), "yAxis"),
        map=_validate_map_section(data.get("map", {}), year_is_day),
    )


def _validate_time_bound(
    section: Dict[str, Any],
    key: str,
    year_is_day: bool = False,
    name: Optional[str] = None,
) -> Optional[TimeBound]:
    name = name or key
    try:
        value = time_bound_from_json(section.get(key))
    except ValueError as e:
        raise ValueError(f"Invalid {name}: {e}") from e

    if year_is_day and value is not None and not is_representable_day(value):
        raise ValueError(f"Invalid {name}: day offset {value} has no calendar date")
    return value


def _validate_axis_section(axis: Dict[str, Any], name: str) -> AxisConfig:
    """Validate an axis configuration section."""
    if not isinstance(axis, dict):
        raise ValueError(f"{name} must be an object")

    scale_type = axis.get("scaleType", ScaleType.LINEAR.value)
    try:
        scale = ScaleType(scale_type)
    except ValueError:
        valid = [s.value for s in ScaleType]
        raise ValueError(
            f"Invalid {name}.scaleType: {scale_type}. Must be one of: {valid}"
        )

    for bound in ("min", "max"):
        value = axis.get(bound)
        if value is not None and (
            isinstance(value, bool) or not isinstance(value, (int, float))
        ):
            raise ValueError(f"{name}.{bound} must be a number")

    return AxisConfig(
        scale_type=scale,
        can_change_scale_type=bool(axis.get("canChangeScaleType", False)),
        min=axis.get("min"),
        max=axis.get("max"),
    )


def _validate_map_section(
    map_section: Dict[str, Any], year_is_day: bool = False
) -> MapConfig:
    """Validate the map section, migrating the legacy "year" field."""
    if not isinstance(map_section, dict):
        raise ValueError("map must be an object")

    if "year" in map_section and "time" not in map_section:
        map_section = dict(map_section, time=map_section["year"])

    projection = map_section.get("projection", "World")
    if projection not in MAP_PROJECTIONS:
        raise ValueError(
            f"Invalid map.projection: {projection}. Must be one of: {MAP_PROJECTIONS}"
        )

    return MapConfig(
        time=_validate_time_bound(map_section, "time", year_is_day, "map.time"),
        projection=projection,
    )


def create_default_config() -> Dict[str, Any]:
    """Create a default chart configuration template."""
    return {
        "slug": "life-expectancy",
        "isPublished": True,
        "tab": "chart",
        "minTime": 1950,
        "maxTime": "latest",
        "selectedEntities": ["GBR", "FRA"],
        "yAxis": {"scaleType": "linear", "canChangeScaleType": True},
        "map": {"time": "latest", "projection": "World"},
    }
