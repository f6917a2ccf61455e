import unittest

from models.experience import BlockResolution, ExperienceResolution, PageResolution
from services.events import build_event


class TestBuildEvent(unittest.TestCase):

    def setUp(self):
        self.resolution = ExperienceResolution(
            page_id="page-1",
            visitor_id="visitor-1",
            session_id="session-1",
            referrer="https://facebook.com",
            utm={"utm_source": "facebook", "utm_campaign": "spring", "fbclid": "x"},
            page_test=PageResolution(
                test_id="t1", variant_id="original", variant_name="Original",
                target_page_id="page-1", redirect=False,
            ),
            blocks=[
                BlockResolution(block_id="b1", type="form", config={}, variant_id="v2", variant_name="Short form"),
                BlockResolution(block_id="b2", type="text", config={}),
            ],
        )

    def test_page_view_carries_identity_utm_and_page_variant(self):
        event = build_event(self.resolution, "page_view", user_agent="Mozilla/5.0")

        self.assertEqual(event.page_id, "page-1")
        self.assertEqual(event.visitor_id, "visitor-1")
        self.assertEqual(event.session_id, "session-1")
        self.assertEqual(event.utm_source, "facebook")
        self.assertEqual(event.utm_campaign, "spring")
        self.assertIsNone(event.utm_medium)
        self.assertEqual(event.referrer, "https://facebook.com")
        self.assertEqual(event.ab_test_id, "t1")
        self.assertEqual(event.variant_id, "original")
        self.assertEqual(event.user_agent, "Mozilla/5.0")
        self.assertEqual(event.metadata, {})

    def test_block_event_adds_block_variant(self):
        event = build_event(self.resolution, "form_submission", block_id="b1", metadata={"fields": 3})

        self.assertEqual(event.block_id, "b1")
        self.assertEqual(event.metadata, {"fields": 3, "block_variant_id": "v2"})

    def test_block_without_variant_adds_nothing(self):
        event = build_event(self.resolution, "button_click", block_id="b2")
        self.assertEqual(event.metadata, {})

    def test_no_page_test(self):
        resolution = self.resolution.model_copy(update={"page_test": None, "referrer": ""})
        event = build_event(resolution, "purchase")

        self.assertIsNone(event.ab_test_id)
        self.assertIsNone(event.variant_id)
        self.assertIsNone(event.referrer)

    def test_caller_metadata_is_not_mutated(self):
        metadata = {"value": 10}
        build_event(self.resolution, "add_to_cart", block_id="b1", metadata=metadata)
        self.assertEqual(metadata, {"value": 10})


if __name__ == "__main__":
    unittest.main()
