import numpy as np
import pytest

from palette_profile.sampler import quantize, sample_image, sample_stride
from palette_profile.weighting import weighted_frame

from conftest import make_image


@pytest.mark.parametrize(
    "width, height, stride",
    [(100, 100, 1), (2000, 1000, 1), (2001, 1000, 2), (4001, 1000, 3), (8001, 1000, 4)],
)
def test_stride_from_pixel_count(width, height, stride):
    assert sample_stride(width, height) == stride


def test_quantize():
    assert quantize(np.array([128, 64, 32]), 5).tolist() == [132, 66, 33]
    assert set(quantize(np.arange(256), 1).tolist()) == {0, 255}
    assert quantize(np.arange(256), 8).tolist() == list(range(256))


def test_zero_area_image_is_empty():
    for shape in [(0, 5, 4), (5, 0, 4)]:
        sample = sample_image(np.zeros(shape, dtype=np.uint8))
        assert sample.is_empty
        assert sample.total_samples == 0


def test_counts_every_pixel(black_white_image):
    sample = sample_image(black_white_image)
    assert sample.total_samples == 100
    assert sample.frequencies == {(0, 0, 0): 70, (255, 255, 255): 30}


def test_alpha_ignored():
    img = make_image([(255, 0, 0)] * 4, width=2)
    img[..., 3] = 0
    assert sample_image(img).frequencies == {(255, 0, 0): 4}


def test_parallel_matches_sequential(noisy_image):
    sequential = sample_image(noisy_image, 5, parallel_min_samples=10**9)
    parallel = sample_image(noisy_image, 5, parallel_min_samples=0, max_workers=4)
    assert parallel.total_samples == sequential.total_samples
    assert parallel.frequencies == sequential.frequencies


def test_weights_sum_to_one(noisy_sample):
    df = weighted_frame(noisy_sample, 0.1)
    assert df["weight"].sum() == pytest.approx(1.0)
    assert df["frequency"].sum() == noisy_sample.total_samples


@pytest.fixture
def red_on_gray():
    # 1% red pixels in a gray field
    img = make_image([(128, 128, 128)] * 1600, width=40)
    img[18:22, 18:22, :3] = (255, 0, 0)
    return img


def test_saliency_reweights_colors(red_on_gray):
    mask = np.zeros(red_on_gray.shape[:2], dtype=np.float32)
    mask[18:22, 18:22] = 1.0
    sample = sample_image(red_on_gray, 8, saliency=mask)

    assert sample.method == "saliency"
    assert sample.frequencies == {(128, 128, 128): 1584, (255, 0, 0): 16}
    assert sample.weights[(255, 0, 0)] == pytest.approx(0.3 * 0.01 + 0.7)
    assert sample.weights[(128, 128, 128)] == pytest.approx(0.3 * 0.99)

    df = weighted_frame(sample, 0.1)
    assert df["hex"].tolist() == ["#ff0000", "#808080"]
    assert df["weight"].sum() == pytest.approx(1.0)
    assert df["frequency"].tolist() == [16, 1584]


def test_saliency_blend_weights(red_on_gray):
    mask = np.zeros(red_on_gray.shape[:2])
    mask[18:22, 18:22] = 1.0
    plain = sample_image(red_on_gray, 8, saliency=mask, saliency_weight=0.0)
    assert plain.weights[(255, 0, 0)] == pytest.approx(0.01)


def test_empty_saliency_keeps_frequencies(red_on_gray):
    sample = sample_image(red_on_gray, 8, saliency=np.zeros((40, 40)))
    assert sample.method == "saliency"
    assert sample.weights is None
    assert weighted_frame(sample, 0.1)["weight"].tolist() == pytest.approx([0.99, 0.01])


def test_saliency_shape_must_match(red_on_gray):
    with pytest.raises(ValueError, match="does not match"):
        sample_image(red_on_gray, saliency=np.zeros((4, 4)))


def test_parallel_saliency_matches_sequential(noisy_image):
    sal = np.random.default_rng(1).random(noisy_image.shape[:2])
    sequential = sample_image(noisy_image, 5, saliency=sal, parallel_min_samples=10**9)
    parallel = sample_image(noisy_image, 5, saliency=sal, parallel_min_samples=0, max_workers=4)

    assert parallel.frequencies == sequential.frequencies
    assert parallel.weights.keys() == sequential.weights.keys()
    for color, w in sequential.weights.items():
        assert parallel.weights[color] == pytest.approx(w)
