import unittest
from unittest.mock import MagicMock, call

from fastapi import Response

from services.storage import BackendStorage, CookieStorage, MemoryStorage


class TestMemoryStorage(unittest.TestCase):

    def test_get_set_delete(self):
        storage = MemoryStorage({"a": "1"})
        storage.set("b", "2")
        storage.delete("a")
        storage.delete("missing")

        self.assertEqual(storage.snapshot(), {"b": "2"})


class TestBackendStorage(unittest.TestCase):

    def setUp(self):
        self.backend = MagicMock()

    def test_keys_are_namespaced(self):
        storage = BackendStorage(self.backend, namespace="pb:v1")
        storage.set("pb_visitor_id", "abc")
        storage.delete("pb_visitor_id")

        self.backend.set.assert_called_once_with("pb:v1:pb_visitor_id", "abc", ex=None)
        self.backend.delete.assert_called_once_with("pb:v1:pb_visitor_id")

    def test_ttl_is_refreshed_on_read(self):
        self.backend.get.return_value = "sess-1"
        storage = BackendStorage(self.backend, namespace="pb:v1:session", ttl=1800)

        self.assertEqual(storage.get("pb_session_id"), "sess-1")
        self.backend.set.assert_called_once_with("pb:v1:session:pb_session_id", "sess-1", ex=1800)

    def test_missing_key_is_not_refreshed(self):
        self.backend.get.return_value = None
        storage = BackendStorage(self.backend, namespace="pb:v1:session", ttl=1800)

        self.assertIsNone(storage.get("pb_session_id"))
        self.backend.set.assert_not_called()


class TestCookieStorage(unittest.TestCase):

    def test_reads_request_cookies_and_pending_writes(self):
        storage = CookieStorage({"pb_visitor_id": "v-1", "pb_ab_variant_t1": "B"})
        storage.set("pb_ab_variant_t2", "C")
        storage.delete("pb_ab_variant_t1")

        self.assertEqual(storage.get("pb_visitor_id"), "v-1")
        self.assertEqual(storage.get("pb_ab_variant_t2"), "C")
        self.assertIsNone(storage.get("pb_ab_variant_t1"))

    def test_apply_writes_cookies(self):
        storage = CookieStorage({}, max_age=3600)
        storage.set("pb_visitor_id", "v-1")
        storage.delete("old")
        response = MagicMock(spec=Response)

        storage.apply(response)

        response.set_cookie.assert_called_once_with("pb_visitor_id", "v-1", max_age=3600, samesite="lax")
        response.delete_cookie.assert_called_once_with("old")

    def test_session_cookies_have_no_max_age(self):
        storage = CookieStorage({})
        storage.set("pb_session_id", "s-1")
        response = Response()

        storage.apply(response)

        header = response.headers["set-cookie"]
        self.assertIn("pb_session_id=s-1", header)
        self.assertNotIn("Max-Age", header)

    def test_apply_clears_pending(self):
        storage = CookieStorage({})
        storage.set("a", "1")
        response = MagicMock(spec=Response)
        storage.apply(response)
        storage.apply(response)

        self.assertEqual(response.set_cookie.call_args_list, [call("a", "1", max_age=None, samesite="lax")])


if __name__ == "__main__":
    unittest.main()
