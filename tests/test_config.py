import pytest

from wallalign.config import AlignmentConfig, DEFAULT_CONFIG


def test_defaults():
    assert DEFAULT_CONFIG.animate is False
    assert DEFAULT_CONFIG.animation_duration_ms == 500.0
    assert DEFAULT_CONFIG.min_marker_distance == 1e-4


@pytest.mark.parametrize("kwargs", [
    {"animation_duration_ms": -1.0},
    {"min_marker_distance": -1e-4},
    {"collinearity_tolerance": float("nan")},
    {"frame_interval_ms": 0},
])
def test_invalid_values_are_rejected(kwargs):
    with pytest.raises(ValueError):
        AlignmentConfig(**kwargs)


def test_animate_must_be_bool():
    with pytest.raises(TypeError):
        AlignmentConfig(animate="yes")


def test_from_dict():
    config = AlignmentConfig.from_dict({"animate": True, "animation_duration_ms": 250.0})

    assert config.animate
    assert config.animation_duration_ms == 250.0


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError, match="animationDuration"):
        AlignmentConfig.from_dict({"animationDuration": 250.0})
