"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from quakewatch.core.region import BoundingBox, NORTH_AMERICA
from quakewatch.core.window import DEFAULT_LOOKAHEAD_DAYS, DEFAULT_WINDOW_DAYS


# USGS FDSN Event Web Service query endpoint
DEFAULT_FEED_URL = "https://earthquake.usgs.gov/fdsnws/event/1/query"


@dataclass
class MonitoringRegion:
    """A geographic region whose events are collected for the report.

    Attributes:
        name: Human-readable name
        bounds: Geographic bounding box
    """
    name: str
    bounds: BoundingBox


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        feed_url: Event feed query endpoint
        poll_interval_seconds: Wait between successful cycles
        window_days: Length of the query window
        lookahead_days: Days past today the query window ends
        min_magnitude: Minimum magnitude requested from the feed
        region: Region collected into the report
        watch_place: Substring of place names listed as nearby in the report
        request_timeout_seconds: Timeout applied to each feed request
        backoff_multiplier: Delay growth per consecutive failed cycle
        max_backoff_seconds: Upper bound on the delay after failures
        max_dedup_entries: Cap on tracked fingerprints (0 = unbounded)
        max_region_matches: Cap on buffered region matches (0 = unbounded)
        raw_log_path: File receiving raw feed responses (None to disable)
    """
    feed_url: str = DEFAULT_FEED_URL
    poll_interval_seconds: float = 60.0
    window_days: int = DEFAULT_WINDOW_DAYS
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS
    min_magnitude: float = 5.0
    region: MonitoringRegion = field(
        default_factory=lambda: MonitoringRegion(name="North America", bounds=NORTH_AMERICA)
    )
    watch_place: str = "Julian"
    request_timeout_seconds: float = 30.0
    backoff_multiplier: float = 2.0
    max_backoff_seconds: float = 600.0
    max_dedup_entries: int = 10000
    max_region_matches: int = 1000
    raw_log_path: str | None = None


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_coordinates(lat: float, lon: float, field_name: str) -> list[ValidationError]:
    """Validate latitude/longitude coordinates.

    Pure function.

    Args:
        lat: Latitude value
        lon: Longitude value
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not -90 <= lat <= 90:
        errors.append(ValidationError(
            field=field_name,
            message=f"Latitude {lat} out of range [-90, 90]",
        ))

    if not -180 <= lon <= 180:
        errors.append(ValidationError(
            field=field_name,
            message=f"Longitude {lon} out of range [-180, 180]",
        ))

    return errors


def validate_bounds(bounds: BoundingBox, field_name: str) -> list[ValidationError]:
    """Validate a bounding box.

    Pure function.

    Args:
        bounds: Bounding box to validate
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    errors.extend(validate_coordinates(
        bounds.min_latitude, bounds.min_longitude,
        f"{field_name}.min",
    ))
    errors.extend(validate_coordinates(
        bounds.max_latitude, bounds.max_longitude,
        f"{field_name}.max",
    ))

    if bounds.min_latitude > bounds.max_latitude:
        errors.append(ValidationError(
            field=field_name,
            message=f"min_latitude ({bounds.min_latitude}) > max_latitude ({bounds.max_latitude})",
        ))

    if bounds.min_longitude > bounds.max_longitude:
        errors.append(ValidationError(
            field=field_name,
            message=f"min_longitude ({bounds.min_longitude}) > max_longitude ({bounds.max_longitude})",
        ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    errors.extend(validate_bounds(config.region.bounds, "region.bounds"))

    if not config.feed_url:
        errors.append(ValidationError(field="feed_url", message="Feed URL is empty"))
    elif config.feed_url.startswith("${"):
        errors.append(ValidationError(
            field="feed_url",
            message="Feed URL not resolved (still contains placeholder)",
        ))

    if config.min_magnitude < 0:
        errors.append(ValidationError(
            field="min_magnitude",
            message=f"Minimum magnitude must be >= 0, got {config.min_magnitude}",
        ))

    if config.window_days < 0:
        errors.append(ValidationError(
            field="window_days",
            message=f"Window must be >= 0 days, got {config.window_days}",
        ))

    if config.poll_interval_seconds <= 0:
        errors.append(ValidationError(
            field="poll_interval_seconds",
            message=f"Poll interval must be positive, got {config.poll_interval_seconds}",
        ))
    elif config.poll_interval_seconds < 10:
        errors.append(ValidationError(
            field="poll_interval_seconds",
            message=f"Poll interval of {config.poll_interval_seconds}s may overload the feed",
            severity="warning",
        ))

    if config.request_timeout_seconds <= 0:
        errors.append(ValidationError(
            field="request_timeout_seconds",
            message=f"Request timeout must be positive, got {config.request_timeout_seconds}",
        ))

    if config.backoff_multiplier < 1:
        errors.append(ValidationError(
            field="backoff_multiplier",
            message=f"Backoff multiplier must be >= 1, got {config.backoff_multiplier}",
        ))

    if config.max_backoff_seconds < config.poll_interval_seconds:
        errors.append(ValidationError(
            field="max_backoff_seconds",
            message=(
                f"max_backoff_seconds ({config.max_backoff_seconds}) < "
                f"poll_interval_seconds ({config.poll_interval_seconds}); backoff disabled"
            ),
            severity="warning",
        ))

    for name in ("max_dedup_entries", "max_region_matches"):
        value = getattr(config, name)
        if value < 0:
            errors.append(ValidationError(
                field=name,
                message=f"Must be >= 0 (0 = unbounded), got {value}",
            ))
        elif value == 0:
            errors.append(ValidationError(
                field=name,
                message="Unbounded; memory grows for the life of the process",
                severity="warning",
            ))

    if not config.watch_place:
        errors.append(ValidationError(
            field="watch_place",
            message="Empty watch_place matches every event in the report",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
