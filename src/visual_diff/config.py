"""Pydantic settings for the diff engine."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables."""

    model_config = {"env_prefix": "VISUAL_DIFF_"}

    # Comparison defaults
    default_color_threshold: float = 0.2
    blur_radius: int = 1
    normalize_dimensions: bool = True
    auto_detect_ignore_regions: bool = False  # opt-in; may hide real changes
    max_image_pixels: int = 40_000_000

    # Scoring
    ssim_window: int = 8
    ssim_acceptable: float = 0.85
    max_changed_percent: float = 0.2
    similarity_weights: tuple[float, float, float] = (0.5, 0.3, 0.2)  # ssim, phash, pixel

    # Region detection
    proximity_px: int = 10
    min_cluster_size: int = 3
    severity_tiers: tuple[int, int] = (100, 10)  # high above, medium above

    # Worker pool
    min_pool_size: int = 2
    max_pool_size: int = 8
    min_chunk_bytes: int = 10_000
    chunk_timeout_seconds: float = 30.0
    ssim_timeout_seconds: float = 15.0

    log_level: str = "INFO"
    cors_allowed_origins: list[str] = []
