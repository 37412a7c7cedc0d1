# supplier/tests/test_proxy.py

import json
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

from django.test import SimpleTestCase

from supplier.models import ProxySetting
from supplier.services.exceptions import ProxyFetchError
from supplier.services.proxy import ProxyConfig, build_proxy_url, fetch_via_proxy, fetch_with_fallback

TARGET = "https://taphoammo.net/api/getStock?kioskToken=K&userToken=U"
ENCODED = "https%3A%2F%2Ftaphoammo.net%2Fapi%2FgetStock%3FkioskToken%3DK%26userToken%3DU"


def _response(body):
    resp = MagicMock()
    resp.read.return_value = body.encode("utf-8")
    cm = MagicMock()
    cm.__enter__.return_value = resp
    return cm


class BuildProxyUrlTests(SimpleTestCase):
    def test_known_routes(self):
        self.assertEqual(build_proxy_url(TARGET, "direct"), TARGET)
        self.assertEqual(build_proxy_url(TARGET, "allorigins"), f"https://api.allorigins.win/get?url={ENCODED}")
        self.assertEqual(build_proxy_url(TARGET, "yproxy"), f"https://api.allorigins.win/raw?url={ENCODED}")
        self.assertEqual(build_proxy_url(TARGET, "corsproxy"), f"https://corsproxy.io/?{ENCODED}")
        self.assertEqual(build_proxy_url(TARGET, "cors-anywhere"), f"https://cors-anywhere.herokuapp.com/{TARGET}")
        self.assertEqual(build_proxy_url(TARGET, "jsonp"), f"https://jsonp.afeld.me/?url={ENCODED}")

    def test_custom_template_and_prefix(self):
        self.assertEqual(
            build_proxy_url(TARGET, "custom", "https://proxy.example.com/fetch?u={url}&x=1"),
            f"https://proxy.example.com/fetch?u={ENCODED}&x=1",
        )
        self.assertEqual(
            build_proxy_url(TARGET, "custom", "https://proxy.example.com/?"),
            f"https://proxy.example.com/?{ENCODED}",
        )

    def test_custom_without_url_and_unknown_type(self):
        with self.assertRaises(ProxyFetchError):
            build_proxy_url(TARGET, "custom", "  ")
        with self.assertRaises(ProxyFetchError):
            build_proxy_url(TARGET, "carrier-pigeon")


class FetchViaProxyTests(SimpleTestCase):
    @patch("supplier.services.proxy.urlopen")
    def test_allorigins_contents_are_unwrapped(self, urlopen):
        urlopen.return_value = _response(json.dumps({"contents": json.dumps({"success": "true", "stock": "7"})}))

        payload = fetch_via_proxy(TARGET, ProxyConfig(proxy_type="allorigins"))

        self.assertEqual(payload, {"success": "true", "stock": "7"})
        request = urlopen.call_args.args[0]
        self.assertTrue(request.full_url.startswith("https://api.allorigins.win/get?url="))
        self.assertEqual(request.get_header("Origin"), "https://taphoammo.net")

    @patch("supplier.services.proxy.urlopen")
    def test_non_json_body_is_returned_raw(self, urlopen):
        urlopen.return_value = _response("<html>blocked</html>")
        self.assertEqual(fetch_via_proxy(TARGET, ProxyConfig()), "<html>blocked</html>")

    @patch("supplier.services.proxy.urlopen")
    def test_http_error_becomes_proxy_error(self, urlopen):
        urlopen.side_effect = HTTPError(TARGET, 403, "Forbidden", hdrs=None, fp=None)

        with self.assertRaisesMessage(ProxyFetchError, "HTTP error! Status: 403"):
            fetch_via_proxy(TARGET, ProxyConfig())


class FetchWithFallbackTests(SimpleTestCase):
    """
    GUARANTEES:
    - The configured route is tried first
    - Fallback proxies are tried once each, skipping the configured one
    - Direct is the last resort; the first error is what surfaces
    """

    @patch("supplier.services.proxy.fetch_via_proxy")
    def test_first_success_wins(self, fetch):
        fetch.return_value = {"success": "true"}

        self.assertEqual(fetch_with_fallback(TARGET, ProxyConfig(proxy_type="corsproxy")), {"success": "true"})
        self.assertEqual(fetch.call_count, 1)

    @patch("supplier.services.proxy.fetch_via_proxy")
    def test_fallback_order(self, fetch):
        tried = []

        def fake(target, config, **kwargs):
            tried.append(config.proxy_type)
            if config.proxy_type == ProxySetting.TYPE_DIRECT:
                return {"success": "true"}
            raise ProxyFetchError(f"{config.proxy_type} failed")

        fetch.side_effect = fake

        fetch_with_fallback(TARGET, ProxyConfig(proxy_type="yproxy"))

        self.assertEqual(tried, ["yproxy", "allorigins", "corsproxy", "direct"])

    @patch("supplier.services.proxy.fetch_via_proxy")
    def test_all_fail_raises_first_error(self, fetch):
        fetch.side_effect = [ProxyFetchError("primary down")] + [ProxyFetchError("other")] * 4

        with self.assertRaisesMessage(ProxyFetchError, "primary down"):
            fetch_with_fallback(TARGET, ProxyConfig(proxy_type="jsonp"))
        self.assertEqual(fetch.call_count, 5)

    @patch("supplier.services.proxy.urlopen")
    def test_network_error_on_every_route(self, urlopen):
        urlopen.side_effect = URLError("unreachable")

        with self.assertRaises(ProxyFetchError):
            fetch_with_fallback(TARGET)
        # direct, allorigins, yproxy, corsproxy, direct
        self.assertEqual(urlopen.call_count, 5)
