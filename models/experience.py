from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from typing import Any
import logging

logger = logging.getLogger(__name__)

# --- Page data as authored in the builder ---
# The builder stores camelCase JSON; snake_case names are accepted too.
# Enum-like fields stay plain strings so unknown values reach the engine,
# which treats them permissively instead of rejecting the page.

class BuilderModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

def _text_or_none(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None

class VisibilityCondition(BuilderModel):
    """One query-string / referrer condition.

    Every attribute is lenient: missing or mistyped values become empty and the
    evaluator drops the condition as incomplete.
    """
    id: str = ""
    field: str = Field(default="", description="utm_source, utm_medium, utm_campaign, utm_term, utm_content, gclid, fbclid, ttclid, referrer or custom.")
    custom_field: str | None = Field(default=None, description="Query parameter name when field is 'custom'.")
    operator: str = Field(default="", description="equals, not_equals, contains, not_contains, starts_with, exists or not_exists.")
    value: str | None = ""

    @field_validator("id", "field", "operator", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text_or_none(v) or ""

    @field_validator("custom_field", "value", mode="before")
    @classmethod
    def coerce_optional_text(cls, v: Any) -> str | None:
        return _text_or_none(v)

class VisibilityRules(BuilderModel):
    enabled: bool = False
    logic: str = "show_if_any"
    conditions: list[VisibilityCondition] = Field(default_factory=list)

    @field_validator("logic", mode="before")
    @classmethod
    def coerce_logic(cls, v: Any) -> str:
        # An unreadable mode is kept as unknown, which shows the block
        return v if isinstance(v, str) else ""

    @field_validator("conditions", mode="before")
    @classmethod
    def drop_non_objects(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        return [c for c in v if isinstance(c, dict) or isinstance(c, VisibilityCondition)]

class BlockVariant(BuilderModel):
    """An alternate configuration for a single block."""
    id: str
    name: str = "Variant"
    config: dict[str, Any] = Field(default_factory=dict)
    traffic_percentage: float = Field(default=50, ge=0, le=100)

class Block(BuilderModel):
    id: str
    type: str
    config: dict[str, Any] = Field(default_factory=dict)
    order: int = 0
    variants: list[BlockVariant] | None = None
    ab_test_enabled: bool | None = None
    visibility_rules: VisibilityRules | None = None

    @field_validator("visibility_rules", mode="wrap")
    @classmethod
    def ignore_unreadable_rules(cls, v: Any, handler):
        try:
            return handler(v)
        except ValidationError as e:
            logger.warning("ignoring unreadable visibility rules: %s", e.errors(include_url=False))
            return None

class Page(BuilderModel):
    id: str
    title: str | None = None
    blocks: list[Block] = Field(default_factory=list)

class AbTestVariant(BuilderModel):
    """A page-level variant: visitors assigned to it are sent to ``page_id``.

    Weights are not capped; over-allocated tests leave the original page no share.
    """
    id: str
    name: str
    page_id: str
    traffic_percentage: float = Field(default=50, ge=0)
    is_control: bool = False

class AbTest(BuilderModel):
    id: str
    name: str = ""
    original_page_id: str
    status: str = "running"
    variants: list[AbTestVariant] = Field(default_factory=list)

# --- Request / Response schemas ---

class VisitorContext(BaseModel):
    """Signals available on this page view."""
    url_params: dict[str, str] = Field(default_factory=dict, description="Query string parameters, keys matched case-sensitively.")
    referrer: str = ""

class ExperienceResolveRequest(VisitorContext):
    """Schema for POST /experience/resolve."""
    page: Page
    ab_test: AbTest | None = Field(default=None, description="Active page-level A/B test for this page, if any.")
    track_page_view: bool = Field(default=False, description="Also record a page_view event when the visitor stays on this page.")

class PageResolution(BaseModel):
    test_id: str
    variant_id: str
    variant_name: str
    target_page_id: str
    redirect: bool = Field(..., description="True when the visitor belongs on a different page.")

class BlockResolution(BaseModel):
    block_id: str
    type: str
    config: dict[str, Any]
    variant_id: str | None = None
    variant_name: str = "Original"
    visible: bool = True

class ExperienceResolution(BaseModel):
    """Everything the renderer and the analytics recorder need for one page view."""
    page_id: str
    visitor_id: str
    session_id: str
    referrer: str = ""
    utm: dict[str, str] = Field(default_factory=dict)
    page_test: PageResolution | None = None
    blocks: list[BlockResolution] = Field(default_factory=list)

    def block(self, block_id: str) -> BlockResolution | None:
        for resolved in self.blocks:
            if resolved.block_id == block_id:
                return resolved
        return None
