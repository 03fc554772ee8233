import io
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

import pytest
from PIL import Image

from image_resizer.core import thumbnail
from image_resizer.core.exceptions import DecodeFailed, EncodeFailed, InvalidSpec
from image_resizer.core.models import Dimensions, FitMode, ThumbnailSpec
from image_resizer.core.thumbnail import compute_dimensions, generate

SOURCE_SIZES = [(800, 600), (600, 800), (1920, 1080), (129, 77), (3, 7), (1000, 1), (128, 128), (50, 50)]


def encode(size, fmt='JPEG', mode='RGB', color='red', **options):
    image = Image.new(mode, size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **options)
    return buffer.getvalue()


def noisy_jpeg(size=(800, 600)):
    image = Image.effect_noise(size, 64).convert('RGB')
    buffer = io.BytesIO()
    image.save(buffer, format='JPEG')
    return buffer.getvalue()


def open_result(result):
    image = Image.open(io.BytesIO(result.data))
    image.load()
    return image


def test_jpeg_800x600_becomes_128x96_jpeg():
    result = generate(encode((800, 600)), ThumbnailSpec(max_width=128))

    assert result.dimensions == Dimensions(128, 96)
    assert result.content_type == 'image/jpeg'
    image = open_result(result)
    assert image.format == 'JPEG'
    assert image.size == (128, 96)
    assert image.width * 3 == image.height * 4


def test_small_png_is_upscaled_by_default():
    result = generate(encode((50, 50), fmt='PNG'), ThumbnailSpec(max_width=128))

    image = open_result(result)
    assert image.format == 'JPEG'
    assert image.size == (128, 128)


def test_small_png_passes_through_without_upscaling():
    result = generate(encode((50, 40), fmt='PNG'), ThumbnailSpec(max_width=128, allow_upscale=False))

    image = open_result(result)
    assert image.format == 'JPEG'
    assert image.size == (50, 40)


def test_large_image_is_still_downscaled_without_upscaling():
    result = generate(encode((800, 600)), ThumbnailSpec(max_width=128, allow_upscale=False))
    assert result.dimensions == Dimensions(128, 96)


@pytest.mark.parametrize('size', SOURCE_SIZES)
def test_width_is_max_width_and_height_follows(size):
    width, height = size
    result = generate(encode(size, fmt='PNG'), ThumbnailSpec(max_width=128))

    image = open_result(result)
    assert image.width == 128
    assert image.height >= 1
    assert abs(image.height - height * 128 / width) <= max(0.5, 1 - height * 128 / width)


@pytest.mark.parametrize('size', [(800, 600), (1920, 1080), (3, 7), (640, 480)])
def test_aspect_ratio_is_preserved_within_one_pixel(size):
    source = Dimensions(*size)
    result = generate(encode(size), ThumbnailSpec(max_width=128))

    longest = max(result.dimensions.width, result.dimensions.height)
    assert abs(result.dimensions.aspect_ratio - source.aspect_ratio) < 1 / longest


@pytest.mark.parametrize('fit_mode', list(FitMode))
@pytest.mark.parametrize('size', SOURCE_SIZES)
def test_second_pass_keeps_dimensions(size, fit_mode):
    spec = ThumbnailSpec(max_width=128, fit_mode=fit_mode)
    first = generate(encode(size), spec)
    second = generate(first.data, spec)

    assert second.dimensions == first.dimensions


@pytest.mark.parametrize('source', [b'', bytearray(), b'this is not an image',
                                    b'<svg xmlns="http://www.w3.org/2000/svg"/>'])
def test_undecodable_input_raises_decode_failed(source):
    with pytest.raises(DecodeFailed):
        generate(source, ThumbnailSpec())


def test_truncated_jpeg_raises_decode_failed():
    data = noisy_jpeg()

    with pytest.raises(DecodeFailed):
        generate(data[:len(data) // 2], ThumbnailSpec())


@pytest.mark.parametrize('max_width', [0, -1, -128, True, 12.5, '128'])
def test_invalid_max_width_raises_before_decoding(max_width):
    with mock.patch.object(thumbnail.Image, 'open') as image_open:
        with pytest.raises(InvalidSpec):
            generate(encode((800, 600)), ThumbnailSpec(max_width=max_width))

    image_open.assert_not_called()


@pytest.mark.parametrize('spec', [
    ThumbnailSpec(quality=0),
    ThumbnailSpec(quality=101),
    ThumbnailSpec(quality=True),
    ThumbnailSpec(quality=80.0),
    ThumbnailSpec(quality='80'),
    ThumbnailSpec(output_format='PNG'),
    ThumbnailSpec(fit_mode='width'),
])
def test_invalid_spec_fields(spec):
    with pytest.raises(InvalidSpec):
        generate(encode((10, 10)), spec)


def test_invalid_spec_wins_over_undecodable_input():
    with pytest.raises(InvalidSpec):
        generate(b'', ThumbnailSpec(max_width=0))


def test_one_pixel_tall_source_keeps_one_pixel_height():
    result = generate(encode((1000, 1)), ThumbnailSpec(max_width=128))
    assert result.dimensions == Dimensions(128, 1)


def test_one_pixel_wide_source_in_max_mode_keeps_one_pixel_width():
    result = generate(encode((1, 1000)), ThumbnailSpec(max_width=128, fit_mode=FitMode.MAX))
    assert result.dimensions == Dimensions(1, 128)


def test_one_pixel_wide_source_is_stretched_in_width_mode():
    result = generate(encode((1, 10)), ThumbnailSpec(max_width=128))
    assert result.dimensions == Dimensions(128, 1280)


def test_max_mode_bounds_the_longest_side():
    result = generate(encode((600, 800)), ThumbnailSpec(max_width=128, fit_mode=FitMode.MAX))

    assert result.dimensions == Dimensions(96, 128)
    assert open_result(result).size == (96, 128)


def test_transparent_pixels_are_flattened_onto_white():
    result = generate(encode((20, 20), fmt='PNG', mode='RGBA', color=(0, 0, 0, 0)), ThumbnailSpec(max_width=16))

    image = open_result(result)
    assert image.mode == 'RGB'
    assert all(channel > 240 for channel in image.getpixel((8, 8)))


@pytest.mark.parametrize('mode,fmt', [('L', 'PNG'), ('P', 'GIF'), ('CMYK', 'JPEG'), ('1', 'BMP')])
def test_other_modes_are_converted_to_rgb(mode, fmt):
    result = generate(encode((64, 32), fmt=fmt, mode=mode, color=0), ThumbnailSpec(max_width=32))

    image = open_result(result)
    assert image.mode == 'RGB'
    assert image.size == (32, 16)


def test_exif_orientation_is_applied():
    exif = Image.Exif()
    exif[0x0112] = 6  # rotated 90 degrees clockwise
    source = encode((80, 40), exif=exif)

    result = generate(source, ThumbnailSpec(max_width=128))
    assert result.dimensions == Dimensions(128, 256)


def test_quality_changes_output_size():
    source = noisy_jpeg()

    low = generate(source, ThumbnailSpec(max_width=400, quality=10))
    high = generate(source, ThumbnailSpec(max_width=400, quality=95))
    assert len(low.data) < len(high.data)


def test_encoder_failure_raises_encode_failed():
    source = encode((800, 600))

    with mock.patch.object(Image.Image, 'save', side_effect=OSError('encoder error -2')):
        with pytest.raises(EncodeFailed) as excinfo:
            generate(source, ThumbnailSpec())

    assert isinstance(excinfo.value.__cause__, OSError)


def test_concurrent_calls_are_independent():
    sizes = [(800, 600), (600, 800), (50, 50), (1920, 1080)] * 4
    sources = [encode(size) for size in sizes]

    with ThreadPoolExecutor(max_workers=4) as executor:
        results = list(executor.map(lambda source: generate(source, ThumbnailSpec(max_width=64)), sources))

    expected = [compute_dimensions(Dimensions(*size), ThumbnailSpec(max_width=64)) for size in sizes]
    assert [result.dimensions for result in results] == expected


@pytest.mark.parametrize('source,spec,expected', [
    (Dimensions(800, 600), ThumbnailSpec(max_width=128), Dimensions(128, 96)),
    (Dimensions(50, 50), ThumbnailSpec(max_width=128), Dimensions(128, 128)),
    (Dimensions(50, 50), ThumbnailSpec(max_width=128, allow_upscale=False), Dimensions(50, 50)),
    (Dimensions(128, 300), ThumbnailSpec(max_width=128, allow_upscale=False), Dimensions(128, 300)),
    (Dimensions(256, 3), ThumbnailSpec(max_width=128), Dimensions(128, 2)),  # 1.5 rounds up
    (Dimensions(256, 1), ThumbnailSpec(max_width=128), Dimensions(128, 1)),  # 0.5 rounds up
    (Dimensions(10000, 1), ThumbnailSpec(max_width=128), Dimensions(128, 1)),  # 0.0128 is clamped
    (Dimensions(600, 800), ThumbnailSpec(max_width=128, fit_mode=FitMode.MAX), Dimensions(96, 128)),
    (Dimensions(800, 600), ThumbnailSpec(max_width=128, fit_mode=FitMode.MAX), Dimensions(128, 96)),
    (Dimensions(60, 80), ThumbnailSpec(max_width=128, fit_mode=FitMode.MAX, allow_upscale=False),
     Dimensions(60, 80)),
    (Dimensions(1, 10000), ThumbnailSpec(max_width=128, fit_mode=FitMode.MAX), Dimensions(1, 128)),
])
def test_compute_dimensions(source, spec, expected):
    assert compute_dimensions(source, spec) == expected
