"""Per page-view experience resolution.

Order matters: the page-level test is settled first, and when it sends the
visitor elsewhere no block work is done, because the blocks belong to the
target page.
"""
from typing import Callable
from models.experience import (
    AbTest,
    Block,
    BlockResolution,
    ExperienceResolution,
    Page,
    PageResolution,
    VisitorContext,
)
from services.attribution import AttributionStore, UTM_EXPIRY_DAYS
from services.identity import IdentityProvider
from services.selector import Variant, VariantSelector, block_test_key, page_test_key
from services.storage import Storage
from services.visibility import is_block_visible
import logging
import random

logger = logging.getLogger(__name__)

RUNNING_STATUS = "running"


class ExperienceResolver:
    def __init__(
        self,
        durable: Storage,
        session: Storage,
        rng: Callable[[], float] = random.random,
        utm_expiry_days: int = UTM_EXPIRY_DAYS,
    ):
        self.identity = IdentityProvider(durable, session)
        self.selector = VariantSelector(durable, rng)
        self.attribution = AttributionStore(durable, expiry_days=utm_expiry_days)

    def resolve_page_test(self, page_id: str, ab_test: AbTest | None) -> PageResolution | None:
        if ab_test is None:
            return None
        if ab_test.status != RUNNING_STATUS:
            logger.debug("A/B test %s is %s, not applied", ab_test.id, ab_test.status)
            return None

        # Control rows are the original page, which the selector synthesizes itself
        variants = [
            Variant(id=v.id, name=v.name, traffic_percentage=v.traffic_percentage, payload=v.page_id)
            for v in ab_test.variants
            if not v.is_control
        ]
        if not variants:
            return None

        selection = self.selector.resolve_variant(page_test_key(ab_test.id), variants, ab_test.original_page_id)
        target_page_id = selection.payload
        return PageResolution(
            test_id=ab_test.id,
            variant_id=selection.variant_id,
            variant_name=selection.variant_name,
            target_page_id=target_page_id,
            redirect=target_page_id != page_id,
        )

    def resolve_block(self, block: Block, context: VisitorContext) -> BlockResolution:
        visible = is_block_visible(block.visibility_rules, context)

        if not block.ab_test_enabled or not block.variants:
            return BlockResolution(block_id=block.id, type=block.type, config=block.config, visible=visible)

        variants = [
            Variant(id=v.id, name=v.name, traffic_percentage=v.traffic_percentage, payload=v.config)
            for v in block.variants
        ]
        selection = self.selector.resolve_variant(block_test_key(block.id), variants, block.config)
        return BlockResolution(
            block_id=block.id,
            type=block.type,
            config=selection.payload,
            variant_id=selection.variant_id,
            variant_name=selection.variant_name,
            visible=visible,
        )

    def resolve(self, page: Page, context: VisitorContext, ab_test: AbTest | None = None) -> ExperienceResolution:
        visitor = self.identity.identity()
        utm = self.attribution.capture(context.url_params)

        resolution = ExperienceResolution(
            page_id=page.id,
            visitor_id=visitor.visitor_id,
            session_id=visitor.session_id,
            referrer=context.referrer,
            utm=utm,
        )

        resolution.page_test = self.resolve_page_test(page.id, ab_test)
        if resolution.page_test and resolution.page_test.redirect:
            logger.info("visitor %s redirected from page %s to %s",
                        visitor.visitor_id, page.id, resolution.page_test.target_page_id)
            return resolution

        for block in sorted(page.blocks, key=lambda b: b.order):
            resolution.blocks.append(self.resolve_block(block, context))

        logger.debug("resolved page %s for visitor %s: %d blocks, %d visible",
                     page.id, visitor.visitor_id, len(resolution.blocks),
                     sum(1 for b in resolution.blocks if b.visible))
        return resolution
