"""Data models for tabs, capture options and capture results.

Option records accept snake_case field names as well as the camelCase names
used on the wire, so an orchestration layer can forward caller JSON as-is.
"""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from browserlens.browser.capabilities import ImageFormat

ScrollType = Literal['pixels', 'coordinates', 'viewport', 'element', 'top', 'bottom']


class TabInfo(BaseModel):
    """A page-type target as reported by a live tab listing."""

    model_config = ConfigDict(extra='ignore')

    id: str
    url: str
    title: str
    active: bool = False
    fav_icon_url: str | None = Field(
        default=None, validation_alias=AliasChoices('fav_icon_url', 'favIconUrl', 'faviconUrl')
    )
    window_id: str | None = Field(default=None, validation_alias=AliasChoices('window_id', 'windowId'))
    browser_type: str = Field(default='chrome', validation_alias=AliasChoices('browser_type', 'browserType'))


class ClipRegion(BaseModel):
    """Rectangle to clip a screenshot to, in CSS pixels."""

    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class CaptureOptions(BaseModel):
    """Screenshot options."""

    format: ImageFormat = 'png'
    quality: int | None = Field(default=None, ge=0, le=100)
    full_page: bool = Field(default=False, validation_alias=AliasChoices('full_page', 'fullPage'))
    clip: ClipRegion | None = None
    device_pixel_ratio: float | None = Field(
        default=None, gt=0, validation_alias=AliasChoices('device_pixel_ratio', 'devicePixelRatio')
    )


class HTMLCaptureOptions(BaseModel):
    """HTML extraction options."""

    include_styles: bool = Field(default=True, validation_alias=AliasChoices('include_styles', 'includeStyles'))
    include_scripts: bool = Field(default=True, validation_alias=AliasChoices('include_scripts', 'includeScripts'))
    prettify: bool = False
    selectors: list[str] | None = None


class CSSCaptureOptions(BaseModel):
    """CSS extraction options. ``selectors`` must be non-empty when used."""

    selectors: list[str] = Field(default_factory=list)
    include_computed: bool = Field(
        default=False, validation_alias=AliasChoices('include_computed', 'includeComputed')
    )
    include_inherited: bool = Field(
        default=False, validation_alias=AliasChoices('include_inherited', 'includeInherited')
    )
    prettify: bool = False


class ScrollOptions(BaseModel):
    """Scroll request. ``selector`` is required for ``element`` scrolls."""

    scroll_type: ScrollType = Field(validation_alias=AliasChoices('scroll_type', 'scrollType'))
    x: float | None = None
    y: float | None = None
    selector: str | None = None
    smooth: bool = True


class ScrollResult(BaseModel):
    """Window scroll offsets read back after a scroll."""

    scroll_type: ScrollType
    scroll_x: float = 0
    scroll_y: float = 0
    selector: str | None = None


class BoundingBox(BaseModel):
    x: int
    y: int
    width: int
    height: int


class ScrollPosition(BaseModel):
    scroll_top: float = Field(default=0, validation_alias=AliasChoices('scroll_top', 'scrollTop'))
    scroll_left: float = Field(default=0, validation_alias=AliasChoices('scroll_left', 'scrollLeft'))


class ElementInfo(BaseModel):
    """Structured introspection of one matched element."""

    selector: str
    tag_name: str = Field(validation_alias=AliasChoices('tag_name', 'tagName'))
    text_content: str | None = Field(default=None, validation_alias=AliasChoices('text_content', 'textContent'))
    styles: dict[str, str] = Field(default_factory=dict)
    attributes: dict[str, str] = Field(default_factory=dict)
    bounding_box: BoundingBox | None = Field(
        default=None, validation_alias=AliasChoices('bounding_box', 'boundingBox')
    )
    is_visible: bool = Field(default=False, validation_alias=AliasChoices('is_visible', 'isVisible'))
    scroll_position: ScrollPosition = Field(
        default_factory=ScrollPosition, validation_alias=AliasChoices('scroll_position', 'scrollPosition')
    )


class TabCaptureOptions(BaseModel):
    """Sub-captures to run in a compound capture. Absent means not requested."""

    screenshot: CaptureOptions | None = None
    html: HTMLCaptureOptions | None = None
    css: CSSCaptureOptions | None = None
    elements: list[str] | None = None


class CaptureResult(BaseModel):
    """Aggregate of a compound capture. Sub-captures that were not requested are None."""

    timestamp: int
    tab_info: TabInfo
    screenshot: str | None = None
    html: str | None = None
    css: str | None = None
    elements: list[ElementInfo] | None = None


class BrowserDetectionResult(BaseModel):
    """Outcome of detecting a browser on a debugging endpoint."""

    type: Literal['chrome', 'auto'] = 'chrome'
    name: str = 'Google Chrome'
    version: str = 'Unknown'
    executable_path: str | None = None
    is_running: bool = True
    debug_port: int | None = None
    web_socket_debugger_url: str | None = None


class FeatureScores(BaseModel):
    tab_management: int = 0
    screenshot_capture: int = 0
    content_extraction: int = 0
    navigation: int = 0
    performance: int = 0


class CapabilityScore(BaseModel):
    """How well the detected setup supports the provider's operations (0-100)."""

    score: int = Field(ge=0, le=100)
    features: FeatureScores = Field(default_factory=FeatureScores)
    reasoning: list[str] = Field(default_factory=list)
