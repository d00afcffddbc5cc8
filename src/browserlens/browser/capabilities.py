"""Static capability tiers describing what a browser provider supports.

Pure data, no I/O. A provider reports exactly one tier for its lifetime.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ImageFormat = Literal['png', 'jpeg', 'webp']


class ScreenshotDimensions(BaseModel):
    """Maximum screenshot size in pixels."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int


class BrowserCapabilities(BaseModel):
    """What a provider can do, one immutable instance per tier."""

    model_config = ConfigDict(frozen=True, extra='forbid')

    can_list_tabs: bool
    can_capture_screenshots: bool
    can_capture_html: bool
    can_capture_css: bool
    can_navigate: bool
    can_extract_elements: bool
    can_inject_javascript: bool
    can_capture_full_page: bool
    can_detect_localhost: bool
    supported_image_formats: tuple[ImageFormat, ...]
    max_screenshot_dimensions: ScreenshotDimensions | None = None
    limitations: tuple[str, ...] = Field(default_factory=tuple)


class CapabilityTier(str, Enum):
    """Capability tiers, most complete first."""

    TIER_1 = 'tier_1'
    TIER_2 = 'tier_2'
    FALLBACK = 'fallback'


TIER_1_CAPABILITIES = BrowserCapabilities(
    can_list_tabs=True,
    can_capture_screenshots=True,
    can_capture_html=True,
    can_capture_css=True,
    can_navigate=True,
    can_extract_elements=True,
    can_inject_javascript=True,
    can_capture_full_page=True,
    can_detect_localhost=True,
    supported_image_formats=('png', 'jpeg', 'webp'),
)

TIER_2_CAPABILITIES = BrowserCapabilities(
    can_list_tabs=True,
    can_capture_screenshots=True,
    can_capture_html=True,
    can_capture_css=False,
    can_navigate=True,
    can_extract_elements=False,
    can_inject_javascript=False,
    can_capture_full_page=True,
    can_detect_localhost=False,
    supported_image_formats=('png',),
    limitations=('Limited CSS extraction', 'No JavaScript injection'),
)

FALLBACK_CAPABILITIES = BrowserCapabilities(
    can_list_tabs=False,
    can_capture_screenshots=True,
    can_capture_html=False,
    can_capture_css=False,
    can_navigate=False,
    can_extract_elements=False,
    can_inject_javascript=False,
    can_capture_full_page=False,
    can_detect_localhost=True,
    supported_image_formats=('png',),
    limitations=(
        'Screen capture only',
        'No browser integration',
        'No tab management',
        'No content extraction',
    ),
)

_TIERS: dict[CapabilityTier, BrowserCapabilities] = {
    CapabilityTier.TIER_1: TIER_1_CAPABILITIES,
    CapabilityTier.TIER_2: TIER_2_CAPABILITIES,
    CapabilityTier.FALLBACK: FALLBACK_CAPABILITIES,
}

# Ordered by feature completeness
TIER_ORDER: tuple[CapabilityTier, ...] = tuple(_TIERS)


def capabilities_for(tier: CapabilityTier | str) -> BrowserCapabilities:
    """Look up the capability descriptor for a tier."""
    return _TIERS[CapabilityTier(tier)]
