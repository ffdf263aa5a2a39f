"""Tests for change notification on config objects."""

from chartstate.axis import AxisConfig, ScaleType
from chartstate.config import ChartConfig


def test_assignment_notifies_with_field_name():
    """Test assigning a public field notifies subscribers."""
    config = ChartConfig()
    changes = []
    config.subscribe(changes.append)

    config.tab = "map"
    config.min_time = 1990

    assert changes == ["tab", "min_time"]


def test_equal_assignment_does_not_notify():
    """Test assigning an equal value is silent."""
    config = ChartConfig(tab="map", selected_entities=["GBR"])
    changes = []
    config.subscribe(changes.append)

    config.tab = "map"
    config.selected_entities = ["GBR"]

    assert changes == []


def test_nested_changes_are_forwarded():
    """Test changes on nested configs reach the parent's subscribers."""
    config = ChartConfig()
    changes = []
    config.subscribe(changes.append)

    config.x_axis.scale_type = ScaleType.LOG
    config.map.projection = "Europe"

    assert changes == ["x_axis.scale_type", "map.projection"]


def test_replaced_child_is_released():
    """Test a replaced nested config no longer notifies the parent."""
    config = ChartConfig()
    old_axis = config.y_axis
    changes = []
    config.subscribe(changes.append)

    config.y_axis = AxisConfig(scale_type=ScaleType.LOG)
    old_axis.scale_type = ScaleType.LOG
    config.y_axis.can_change_scale_type = True

    assert changes == ["y_axis", "y_axis.can_change_scale_type"]


def test_unsubscribe():
    """Test unsubscribed listeners stop receiving changes."""
    config = ChartConfig()
    changes = []
    unsubscribe = config.subscribe(changes.append)

    config.tab = "table"
    unsubscribe()
    unsubscribe()
    config.tab = "chart"

    assert changes == ["tab"]


def test_selection_helpers_reassign():
    """Test selection helpers notify because they reassign the list."""
    config = ChartConfig()
    changes = []
    config.subscribe(changes.append)

    config.select_entities(["GBR", "FRA"])
    config.toggle_entity("FRA")
    config.toggle_entity("ESP")

    assert config.selected_entities == ["GBR", "ESP"]
    assert changes == ["selected_entities"] * 3
