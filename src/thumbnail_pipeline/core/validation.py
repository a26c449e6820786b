"""Validation of untrusted resize parameters and their metadata encoding.

The upload API and the resize worker never share a database. The uploader
flattens a ``ResizeConfig`` into string-valued object metadata and the worker
rebuilds it from that metadata. Both directions go through this module so
the bounds and defaults live in exactly one place: ``ResizeConfig``.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError
from .models import DEFAULT_CONFIG, ImageFormat, ResizeConfig
from .protocols import LoggerProtocol

CONFIG_FIELDS = ("width", "height", "quality", "format")

# Wire contract between uploader and worker. Do not rename.
METADATA_KEYS: Dict[str, str] = {
    "width": "thumbnailWidth",
    "height": "thumbnailHeight",
    "quality": "thumbnailQuality",
    "format": "thumbnailFormat",
}

FORMAT_ALIASES = {"jpg": ImageFormat.JPEG.value}

PRESETS: Dict[str, ResizeConfig] = {
    "small": ResizeConfig(width=150, height=150, quality=80),
    "medium": ResizeConfig(width=300, height=300, quality=85),
    "large": ResizeConfig(width=600, height=600, quality=90),
    "webp_small": ResizeConfig(
        width=150, height=150, quality=80, format=ImageFormat.WEBP
    ),
}

_INTEGER = re.compile(r"[+-]?[0-9]+")
_NUMBER_ERRORS = {"int_parsing", "int_type", "int_from_float", "float_parsing"}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _clean(raw: Mapping[str, Any], issues: List[Tuple[str, str]]) -> Dict[str, Any]:
    """Drop absent values and normalise strings before model validation.

    Numbers must be plain decimal integers: booleans and strings such as
    ``"1_000"`` or ``"1e3"`` are reported in ``issues`` and left out.
    """
    cleaned: Dict[str, Any] = {}
    for field in CONFIG_FIELDS:
        value = raw.get(field)
        if _is_blank(value):
            continue
        if field == "format":
            if isinstance(value, str):
                lowered = value.strip().lower()
                value = FORMAT_ALIASES.get(lowered, lowered)
        elif isinstance(value, bool) or (
            isinstance(value, str) and not _INTEGER.fullmatch(value.strip())
        ):
            issues.append((field, f"{field.capitalize()} must be a valid number"))
            continue
        elif isinstance(value, str):
            value = int(value.strip())
        cleaned[field] = value
    return cleaned


def _describe(error: Dict[str, Any]) -> Tuple[str, str]:
    """Turn one pydantic error into a ``(field, message)`` pair."""
    field = ".".join(str(part) for part in error.get("loc", ())) or "config"
    label = field.capitalize()
    unit = "px" if field in ("width", "height") else ""
    ctx = error.get("ctx") or {}
    kind = error.get("type", "")

    if kind in _NUMBER_ERRORS:
        return field, f"{label} must be a valid number"
    if kind == "greater_than_equal":
        return field, f"{label} must be at least {ctx.get('ge')}{unit}"
    if kind == "less_than_equal":
        return field, f"{label} must not exceed {ctx.get('le')}{unit}"
    if kind == "enum":
        allowed = ", ".join(fmt.value for fmt in ImageFormat)
        return field, f"{label} must be one of: {allowed}"
    return field, error.get("msg", "Invalid value")


def validate(raw: Optional[Mapping[str, Any]] = None) -> ResizeConfig:
    """
    Parse client input into a canonical ``ResizeConfig``.

    Works the same for JSON bodies (ints), form fields and object metadata
    (strings). Absent, ``None`` and empty values take their defaults, or the
    values of the named ``preset`` when one is given.

    Args:
        raw: Mapping holding any of ``width``, ``height``, ``quality``,
            ``format`` and ``preset``. Other keys are ignored.

    Returns:
        The fully populated, immutable configuration.

    Raises:
        ValidationError: Listing every offending field.
    """
    raw = raw or {}
    issues: List[Tuple[str, str]] = []

    base: Dict[str, Any] = {}
    preset = raw.get("preset")
    if not _is_blank(preset):
        preset_config = PRESETS.get(str(preset).strip().lower())
        if preset_config is None:
            issues.append(
                ("preset", f"Preset must be one of: {', '.join(PRESETS)}")
            )
        else:
            base = preset_config.model_dump()

    try:
        config = ResizeConfig.model_validate({**base, **_clean(raw, issues)})
    except PydanticValidationError as exc:
        issues.extend(_describe(error) for error in exc.errors())
        raise ValidationError(issues) from exc

    if issues:
        raise ValidationError(issues)
    return config


def to_metadata(config: ResizeConfig) -> Dict[str, str]:
    """Flatten a config into the string metadata entries the worker reads."""
    values = config.model_dump(mode="json")
    return {METADATA_KEYS[field]: str(values[field]) for field in CONFIG_FIELDS}


def metadata_value(metadata: Mapping[str, str], key: str) -> Optional[str]:
    """Case-insensitive metadata lookup; S3 returns user metadata keys lower-cased."""
    wanted = key.lower()
    for name, value in metadata.items():
        if name.lower() == wanted:
            return value
    return None


def has_resize_metadata(metadata: Optional[Mapping[str, str]]) -> bool:
    if not metadata:
        return False
    return any(metadata_value(metadata, key) is not None for key in METADATA_KEYS.values())


def from_metadata(metadata: Mapping[str, str]) -> ResizeConfig:
    """Rebuild a config from object metadata, validating it like client input."""
    raw = {field: metadata_value(metadata, key) for field, key in METADATA_KEYS.items()}
    return validate(raw)


def config_from_metadata_or_default(
    metadata: Optional[Mapping[str, str]],
    logger: Optional[LoggerProtocol] = None,
) -> ResizeConfig:
    """Recover the config stored on an object, falling back to the defaults.

    Never raises.
    """
    try:
        if not has_resize_metadata(metadata):
            if logger:
                logger.debug("No resize metadata found, using default config")
            return DEFAULT_CONFIG
        return from_metadata(metadata)  # type: ignore[arg-type]
    except ValidationError as exc:
        if logger:
            logger.warning(f"Invalid resize metadata ({exc}), using default config")
    except Exception as exc:  # noqa: BLE001
        if logger:
            logger.warning(f"Unreadable resize metadata ({exc}), using default config")
    return DEFAULT_CONFIG
