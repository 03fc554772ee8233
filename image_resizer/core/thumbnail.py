import io
from contextlib import ExitStack

from PIL import Image, ImageOps

from .exceptions import DecodeFailed, EncodeFailed, InvalidSpec
from .models import Dimensions, FitMode, ThumbnailImage, ThumbnailSpec

SUPPORTED_OUTPUT_FORMATS = {'JPEG'}
# JPEG qualities above 95 disable parts of the compression and only grow the file.
MAX_JPEG_QUALITY = 95
WHITE = (255, 255, 255)
DECODE_ERRORS = (OSError, SyntaxError, ValueError, Image.DecompressionBombError)


def validate_spec(spec: ThumbnailSpec):
    if isinstance(spec.max_width, bool) or not isinstance(spec.max_width, int):
        raise InvalidSpec(f'max_width must be an integer, got {spec.max_width!r}')
    if spec.max_width <= 0:
        raise InvalidSpec(f'max_width must be positive, got {spec.max_width}')
    if not isinstance(spec.fit_mode, FitMode):
        raise InvalidSpec(f'unknown fit mode {spec.fit_mode!r}')
    if str(spec.output_format).upper() not in SUPPORTED_OUTPUT_FORMATS:
        raise InvalidSpec(f'unsupported output format {spec.output_format!r}')
    if spec.quality is None:
        return
    if isinstance(spec.quality, bool) or not isinstance(spec.quality, int):
        raise InvalidSpec(f'quality must be an integer, got {spec.quality!r}')
    if not 1 <= spec.quality <= MAX_JPEG_QUALITY:
        raise InvalidSpec(f'quality must be between 1 and {MAX_JPEG_QUALITY}, got {spec.quality}')


def _scale(value: int, numerator: int, denominator: int) -> int:
    """Round half up of value * numerator / denominator, never below 1."""
    return max(1, (2 * value * numerator + denominator) // (2 * denominator))


def compute_dimensions(source: Dimensions, spec: ThumbnailSpec) -> Dimensions:
    """
    Target size of the thumbnail for a source of the given size.

    In WIDTH mode the width is set to max_width and the height follows. In MAX
    mode whichever side is longer is set to max_width. Sources whose bounded
    side already fits are returned unchanged unless upscaling is allowed.
    """
    bound_height = spec.fit_mode is FitMode.MAX and source.height > source.width
    bounded = source.height if bound_height else source.width

    if bounded <= spec.max_width and not spec.allow_upscale:
        return source

    if bound_height:
        return Dimensions(width=_scale(source.width, spec.max_width, source.height),
                          height=spec.max_width)
    return Dimensions(width=spec.max_width,
                      height=_scale(source.height, spec.max_width, source.width))


def _decode(source: bytes, stack: ExitStack) -> Image.Image:
    if not source:
        raise DecodeFailed('empty input')
    try:
        image = Image.open(io.BytesIO(source))
    except DECODE_ERRORS as exc:
        raise DecodeFailed(str(exc)) from exc
    stack.callback(image.close)

    try:
        image.load()
        upright = ImageOps.exif_transpose(image)
    except DECODE_ERRORS as exc:
        raise DecodeFailed(f'{image.format} data is corrupt: {exc}') from exc
    stack.callback(upright.close)
    return upright


def _to_rgb(image: Image.Image, stack: ExitStack) -> Image.Image:
    """JPEG has no alpha channel, so transparent pixels are flattened onto white."""
    if image.mode == 'RGB':
        return image

    if image.mode in ('RGBA', 'LA', 'PA') or 'transparency' in image.info:
        rgba = image.convert('RGBA')
        stack.callback(rgba.close)
        converted = Image.new('RGB', rgba.size, WHITE)
        converted.paste(rgba, mask=rgba.getchannel('A'))
    else:
        converted = image.convert('RGB')
    stack.callback(converted.close)
    return converted


def generate(source: bytes, spec: ThumbnailSpec = ThumbnailSpec()) -> ThumbnailImage:
    """
    Turn encoded image bytes into encoded thumbnail bytes.

    Raises InvalidSpec before the source is looked at, DecodeFailed when the
    source is not a readable image and EncodeFailed when the thumbnail cannot be
    written. All intermediate pixel buffers are released before returning.
    """
    validate_spec(spec)

    with ExitStack() as stack:
        image = _decode(source, stack)
        target = compute_dimensions(Dimensions(*image.size), spec)

        output = io.BytesIO()
        try:
            rgb = _to_rgb(image, stack)
            resized = rgb.resize((target.width, target.height), Image.Resampling.LANCZOS)
            stack.callback(resized.close)

            options = {} if spec.quality is None else {'quality': spec.quality}
            resized.save(output, format=spec.output_format.upper(), **options)
        except (OSError, ValueError, KeyError) as exc:
            raise EncodeFailed(str(exc)) from exc

        return ThumbnailImage(data=output.getvalue(), dimensions=target)
