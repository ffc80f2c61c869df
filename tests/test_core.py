import numpy as np
import pytest

from cropsicle import growcut_segmentation, run_pipeline, segment_image, segment_rgba
from cropsicle.cli import _synthetic_case


def _two_tone(h=20, w=20):
    image = np.zeros((h, w, 3), dtype=np.uint8)
    image[:, w // 2:] = 200
    image[:, :w // 2] = 40
    overlay = np.zeros((h, w, 4), dtype=np.uint8)
    overlay[2, 2] = (0, 255, 0, 255)
    overlay[h - 3, w - 3] = (255, 0, 0, 255)
    return image, overlay


def test_two_tone_image_splits_at_color_edge():
    image, overlay = _two_tone()
    mask = segment_image(image, overlay)
    assert mask.dtype == bool
    assert mask[:, :10].all()
    assert not mask[:, 10:].any()


def test_synthetic_case_converges():
    image, overlay = _synthetic_case()
    strength, iterations, converged = growcut_segmentation(image, overlay, workers=2)
    assert converged
    assert 1 < iterations < 2000
    assert np.all(np.abs(strength) <= 1.0)


def test_segmentation_without_seeds_is_all_background():
    image, overlay = _two_tone()
    overlay[...] = 0
    strength, iterations, converged = growcut_segmentation(image, overlay)
    assert converged and iterations == 1
    assert not segment_image(image, overlay).any()


def test_smoothing_toggle_keeps_labels_on_clean_image():
    image, overlay = _two_tone()
    assert np.array_equal(segment_image(image, overlay, smooth=False),
                          segment_image(image, overlay, smooth=True))


def test_segment_rgba_passes_colors_through():
    image, overlay = _two_tone()
    out = segment_rgba(image, overlay)
    assert out.shape == (20, 20, 4)
    assert np.array_equal(out[..., :3], image)
    assert set(np.unique(out[..., 3]).tolist()) == {0, 255}


def test_segment_rgba_show_effects_uses_smoothed_colors():
    image, overlay = _two_tone()
    out = segment_rgba(image, overlay, show_effects=True)
    # the color edge is blurred across columns 9 and 10
    assert out[5, 9, 0] not in (40, 200)
    assert out[5, 0, 0] == 40


def test_mismatched_sizes_fail_fast():
    image, overlay = _two_tone()
    with pytest.raises(ValueError, match="same size"):
        segment_image(image, overlay[:, :-1])


@pytest.mark.parametrize("image_shape, overlay_shape", [
    ((0, 0, 3), (0, 0, 4)),
    ((4, 4), (4, 4, 4)),
    ((4, 4, 3), (4, 4, 3)),
])
def test_bad_inputs_raise(image_shape, overlay_shape):
    with pytest.raises(ValueError):
        segment_image(np.zeros(image_shape, np.uint8), np.zeros(overlay_shape, np.uint8))


def test_bad_parameters_raise():
    image, overlay = _two_tone()
    with pytest.raises(ValueError):
        segment_image(image, overlay, max_iterations=0)
    with pytest.raises(ValueError):
        segment_image(image, overlay, workers=-2)


def test_signed_integer_image_keeps_strength_bounded():
    image = np.array([[[32767] * 3, [-32768] * 3]], dtype=np.int16)
    overlay = np.array([[(0, 255, 0, 255), (255, 0, 0, 255)]], dtype=np.uint8)
    strength, iterations, converged = growcut_segmentation(image, overlay, smooth=False, workers=0)
    assert converged and iterations == 1
    assert np.all(np.abs(strength) <= 1.0)
    assert strength.tolist() == [[1.0, -1.0]]


def test_show_effects_builds_color_field_once(monkeypatch):
    import cropsicle.core as core

    calls = []
    real = core.build_color_field

    def counting(*args, **kwargs):
        calls.append(1)
        return real(*args, **kwargs)

    monkeypatch.setattr(core, "build_color_field", counting)
    image, overlay = _two_tone()
    segment_rgba(image, overlay, show_effects=True)
    assert len(calls) == 1


def test_run_pipeline_returns_color_field():
    image, overlay = _two_tone()
    colors, strength, iterations, converged = run_pipeline(image, overlay, smooth=False)
    assert colors.shape == (20, 20, 3)
    assert colors[0, 0, 0] == pytest.approx(40 / 255)
    assert strength.shape == (20, 20)
    assert converged and iterations >= 1
