"""Tests for tiktok_ads_fs.adapter, including the end-to-end upload flows."""

import hashlib
import io
from unittest.mock import MagicMock, patch

import pytest
from curl_cffi.requests.exceptions import RequestException as CffiRequestException
from fakes import (
    COOKIE_CONFIG,
    JPEG_BYTES,
    MP4_BYTES,
    PNG_BYTES,
    SIGNED_URL,
    TOKEN_CONFIG,
    UNSIGNED_URL,
    FakeAsyncSession,
    FakeResponse,
    build_client,
    form_dict,
)

from tiktok_ads_fs.adapter import TikTokAdapter
from tiktok_ads_fs.cache import AdvertiserCache
from tiktok_ads_fs.config import AdapterConfig
from tiktok_ads_fs.constants import BUSINESS_API_BASE_URI
from tiktok_ads_fs.exceptions import (
    AuthenticationError,
    ClassificationError,
    ConfigurationError,
    ResolutionError,
    UnsupportedOperationError,
    UploadError,
)
from tiktok_ads_fs.models import Capability, FileAttributes

ADVERTISERS_BODY = {"code": 0, "data": {"list": [{"advertiser_id": "adv-1"}]}}


def make_adapter(config, session, cache=None, handler=None):
    client = build_client(config, session, handler=handler)
    return TikTokAdapter(config, cache=cache or AdvertiserCache(mode="memory"), client=client)


@pytest.fixture
def token_adapter(session):
    return make_adapter({**TOKEN_CONFIG, "advertiser_id": "adv"}, session)


class TestConstruction:
    def test_requires_token_or_cookie(self):
        with pytest.raises(ConfigurationError, match="Access token or cookie"):
            TikTokAdapter({"app_id": "a"})

    @pytest.mark.parametrize("cookie", ["sessionid_ss_ads=x", "csrftoken=y", "foo=bar; baz=qux"])
    def test_cookie_missing_required_fields(self, cookie):
        with pytest.raises(ConfigurationError):
            TikTokAdapter({"cookie": cookie})

    def test_cookie_error_is_authentication_error(self):
        with pytest.raises(AuthenticationError, match="csrftoken"):
            TikTokAdapter({"cookie": "sessionid_ss_ads=x"})

    def test_configured_advertiser_skips_lookup(self, session):
        cache = MagicMock(spec=AdvertiserCache)
        adapter = make_adapter({**TOKEN_CONFIG, "advertiser_id": "fixed"}, session, cache=cache)
        assert adapter.advertiser_id == "fixed"
        assert adapter.client.advertiser_id == "fixed"
        session.get.assert_not_called()
        cache.get_or_compute.assert_not_called()

    def test_accepts_adapter_config(self, session):
        config = AdapterConfig(access_token="t", advertiser_id="adv")
        client = build_client({"access_token": "t"}, session, advertiser_id="adv")
        adapter = TikTokAdapter(config, client=client)
        assert adapter.config is config
        assert adapter.cache is None

    def test_token_mode_without_app_pair(self, session):
        with pytest.raises(ConfigurationError, match="App ID and secret"):
            make_adapter({"access_token": "t"}, session)
        session.close.assert_called_once()

    def test_empty_advertiser_list_is_fatal(self, session):
        session.get.return_value = FakeResponse({"code": 0, "data": {"list": []}})
        with pytest.raises(ResolutionError, match="Not found any advertisers"):
            make_adapter(TOKEN_CONFIG, session)
        session.close.assert_called_once()

    def test_cookie_mode_resolves_account(self, session):
        session.get.return_value = FakeResponse({"data": {"account": {"id": "7001"}}})
        adapter = make_adapter({"cookie": COOKIE_CONFIG["cookie"]}, session)
        assert adapter.advertiser_id == "7001"

    def test_default_cache_opened_at_configured_path(self, session, tmp_path):
        session.get.return_value = FakeResponse(ADVERTISERS_BODY)
        db_path = tmp_path / "adv.db"
        config = {**TOKEN_CONFIG, "cache_path": str(db_path)}
        adapter = TikTokAdapter(config, client=build_client(config, session))
        assert db_path.exists()
        adapter.close()


class TestAdvertiserResolutionScenario:
    """Token credentials without advertiser_id resolve and cache the first advertiser."""

    def test_resolves_first_advertiser(self, session):
        session.get.return_value = FakeResponse(ADVERTISERS_BODY)
        adapter = make_adapter(TOKEN_CONFIG, session)

        assert adapter.advertiser_id == "adv-1"
        args, kwargs = session.get.call_args
        assert args[0] == BUSINESS_API_BASE_URI + "oauth2/advertiser/get/"
        assert kwargs["params"] == {"app_id": "a", "secret": "s"}

    def test_lookup_cached_for_24_hours(self, session):
        now = [1_000_000.0]
        cache = AdvertiserCache(mode="memory", clock=lambda: now[0])
        session.get.return_value = FakeResponse(ADVERTISERS_BODY)

        make_adapter(TOKEN_CONFIG, session, cache=cache)
        now[0] += 23 * 3600
        make_adapter(TOKEN_CONFIG, session, cache=cache)
        assert session.get.call_count == 1

        now[0] += 3600
        make_adapter(TOKEN_CONFIG, session, cache=cache)
        assert session.get.call_count == 2

    def test_different_credentials_miss_cache(self, session):
        cache = AdvertiserCache(mode="memory")
        session.get.return_value = FakeResponse(ADVERTISERS_BODY)
        make_adapter(TOKEN_CONFIG, session, cache=cache)
        make_adapter({**TOKEN_CONFIG, "app_secret": "other"}, session, cache=cache)
        assert session.get.call_count == 2

    def test_persistent_cache_shared_across_adapters(self, session, tmp_path):
        session.get.return_value = FakeResponse(ADVERTISERS_BODY)
        db_path = tmp_path / "cache.db"
        with AdvertiserCache(db_path=db_path) as cache:
            make_adapter(TOKEN_CONFIG, session, cache=cache)
        with AdvertiserCache(db_path=db_path) as cache:
            assert make_adapter(TOKEN_CONFIG, session, cache=cache).advertiser_id == "adv-1"
        assert session.get.call_count == 1


class TestPutImage:
    def test_token_image_scenario(self, token_adapter, session, captured_forms):
        forms, _ = captured_forms
        session.post.return_value = FakeResponse({"code": 0, "data": {"image_id": "x", "url": "y"}})

        assert token_adapter.put("photo.jpg", JPEG_BYTES) == {"image_id": "x", "url": "y"}
        assert session.post.call_args.args[0] == BUSINESS_API_BASE_URI + "file/image/ad/upload/"
        fields = form_dict(forms[0])
        assert fields["image_signature"] == hashlib.md5(JPEG_BYTES).hexdigest()
        assert fields["image_file"] == JPEG_BYTES
        assert "file_name" not in fields

    def test_include_file_name_option(self, token_adapter, session, captured_forms):
        forms, _ = captured_forms
        session.post.return_value = FakeResponse({"data": {"image_id": "x"}})
        token_adapter.put("media/banner.png", PNG_BYTES, {"include_file_name": True})
        assert form_dict(forms[0])["file_name"] == "banner.png"

    def test_cookie_image_returns_unsigned_url(self, session, captured_forms):
        session.post.return_value = FakeResponse({"data": {"image_url": SIGNED_URL}})
        adapter = make_adapter(COOKIE_CONFIG, session)
        assert adapter.put("photo.jpg", JPEG_BYTES) == UNSIGNED_URL

    @pytest.mark.parametrize("name,contents", [
        ("a.jpg", JPEG_BYTES),
        ("a.jpeg", JPEG_BYTES),
        ("a.png", PNG_BYTES),
        ("no_extension", PNG_BYTES),
    ])
    def test_images_never_take_video_path(self, token_adapter, name, contents):
        with patch.object(token_adapter.client, "upload_image", return_value={}) as image, \
                patch.object(token_adapter.client, "upload_video") as video:
            token_adapter.put(name, contents)
        image.assert_called_once()
        video.assert_not_called()

    def test_file_like_contents(self, token_adapter):
        with patch.object(token_adapter.client, "upload_image", return_value={}) as image:
            token_adapter.put("a.jpg", io.BytesIO(JPEG_BYTES))
        assert image.call_args.args[1] == JPEG_BYTES

    def test_upload_error_propagates(self, token_adapter, session, captured_forms):
        session.post.return_value = FakeResponse({"code": 40100, "message": "Access token is invalid"})
        with pytest.raises(UploadError, match="Access token is invalid"):
            token_adapter.put("a.jpg", JPEG_BYTES)


class TestPutVideo:
    def test_token_video_scenario(self, token_adapter, session, captured_forms):
        session.post.return_value = FakeResponse({"code": 0, "data": [{"video_id": "v1"}]})
        session.get.return_value = FakeResponse(
            {"code": 0, "data": {"list": [{"video_id": "v1", "preview_url": "u"}]}}
        )
        with patch("tiktok_ads_fs.client.time.sleep") as sleep:
            result = token_adapter.put("clip.mp4", MP4_BYTES)

        assert result == {"video_id": "v1", "preview_url": "u"}
        sleep.assert_called_once_with(1.0)
        assert session.get.call_args.kwargs["params"]["video_ids"] == '["v1"]'

    def test_poll_interval_from_config(self, session):
        adapter = make_adapter({**TOKEN_CONFIG, "advertiser_id": "adv", "video_poll_interval": 2.5}, session)
        with patch.object(adapter.client, "upload_video", return_value={}) as video:
            adapter.put("clip.mp4", MP4_BYTES, {"auto_bind_enabled": True})
        assert video.call_args.kwargs["poll_interval"] == 2.5
        assert video.call_args.args[2] == {"auto_bind_enabled": True}

    def test_cookie_mode_video_rejected(self, session, captured_forms):
        adapter = make_adapter(COOKIE_CONFIG, session)
        with pytest.raises(UploadError, match="not supported"):
            adapter.put("clip.mp4", MP4_BYTES)
        session.post.assert_not_called()


class TestPutUnsupported:
    @pytest.mark.parametrize("name,contents,mime", [
        ("notes.txt", b"hello", "text/plain"),
        ("anim.gif", b"GIF89a", "image/gif"),
        ("blob", b"\x00\x01\x02", "application/octet-stream"),
    ])
    def test_classification_error_names_type(self, token_adapter, session, name, contents, mime):
        with pytest.raises(ClassificationError, match=f"Unsupported file type: {mime}") as exc_info:
            token_adapter.put(name, contents)
        assert exc_info.value.mime_type == mime
        session.post.assert_not_called()

    def test_bad_contents_type(self, token_adapter):
        with pytest.raises(TypeError):
            token_adapter.put("a.jpg", 12345)


class TestPutMany:
    def test_cookie_batch_scenario(self, session, captured_forms):
        def handler(url, params, mime):
            if mime.form[0].filename == "b.jpg":
                return CffiRequestException("Failed to connect to ads.tiktok.com")
            return FakeResponse({"code": 0, "data": {"image_url": SIGNED_URL}})

        adapter = make_adapter(COOKIE_CONFIG, session, handler=handler)
        results = adapter.put_many({"a.jpg": JPEG_BYTES, "b.jpg": JPEG_BYTES}, {"concurrency": 2})

        assert list(results) == ["a.jpg", "b.jpg"]
        assert results["a.jpg"] == UNSIGNED_URL
        assert isinstance(results["b.jpg"], str)
        assert "Failed to connect" in results["b.jpg"]
        assert FakeAsyncSession.instances[0].kwargs["max_clients"] == 2

    def test_default_concurrency(self, session, captured_forms):
        adapter = make_adapter(
            COOKIE_CONFIG, session,
            handler=lambda url, params, mime: FakeResponse({"data": {"url": "https://cdn/a.jpg"}}),
        )
        adapter.put_many({"a.jpg": JPEG_BYTES})
        assert FakeAsyncSession.instances[0].kwargs["max_clients"] == 5

    def test_sequence_keyed_by_index(self, session, captured_forms):
        adapter = make_adapter(
            COOKIE_CONFIG, session,
            handler=lambda url, params, mime: FakeResponse({"data": {"url": f"https://cdn/{mime.form[0].filename}"}}),
        )
        results = adapter.put_many([("x.jpg", JPEG_BYTES), ("x.jpg", PNG_BYTES)])
        assert results == {0: "https://cdn/x.jpg", 1: "https://cdn/x.jpg"}

    def test_non_images_reported_inline(self, session, captured_forms):
        adapter = make_adapter(
            COOKIE_CONFIG, session,
            handler=lambda url, params, mime: FakeResponse({"data": {"url": "https://cdn/ok.png"}}),
        )
        results = adapter.put_many({"clip.mp4": MP4_BYTES, "ok.png": PNG_BYTES, "notes.txt": b"hi"})
        assert list(results) == ["clip.mp4", "ok.png", "notes.txt"]
        assert results["clip.mp4"] == "Unsupported file type: video/mp4"
        assert results["ok.png"] == "https://cdn/ok.png"
        assert results["notes.txt"] == "Unsupported file type: text/plain"

    def test_error_body_reported_inline(self, session, captured_forms):
        adapter = make_adapter(
            COOKIE_CONFIG, session,
            handler=lambda url, params, mime: FakeResponse({"code": 1, "data": None}),
        )
        assert adapter.put_many({"a.jpg": JPEG_BYTES}) == {"a.jpg": "Unknown error"}


class TestMetadata:
    def test_capabilities(self, token_adapter):
        assert token_adapter.supports(Capability.WRITE)
        assert token_adapter.supports(Capability.MIME_TYPE)
        assert not token_adapter.supports(Capability.READ)

    def test_mime_type(self, token_adapter):
        attrs = token_adapter.mime_type("dir/photo.png")
        assert attrs == FileAttributes("dir/photo.png", mime_type="image/png")
        assert attrs.file_size is None

    def test_visibility_noop(self, token_adapter):
        assert token_adapter.visibility("a.jpg") == FileAttributes("a.jpg")

    def test_get_video_info(self, token_adapter, session):
        session.get.return_value = FakeResponse({"data": {"list": [{"video_id": "v2", "preview_url": "p"}]}})
        assert token_adapter.get_video_info("v2")["preview_url"] == "p"


class TestUnsupportedOperations:
    @pytest.mark.parametrize("operation,args", [
        ("write", ("a.jpg", b"x")),
        ("write_stream", ("a.jpg", io.BytesIO(b"x"))),
        ("read", ("a.jpg",)),
        ("read_stream", ("a.jpg",)),
        ("file_exists", ("a.jpg",)),
        ("directory_exists", ("dir",)),
        ("delete", ("a.jpg",)),
        ("delete_directory", ("dir",)),
        ("create_directory", ("dir",)),
        ("set_visibility", ("a.jpg", "public")),
        ("list_contents", ("dir",)),
        ("move", ("a.jpg", "b.jpg")),
        ("copy", ("a.jpg", "b.jpg")),
        ("last_modified", ("a.jpg",)),
        ("checksum", ("a.jpg",)),
        ("file_size", ("a.jpg",)),
        ("get_url", ("a.jpg",)),
    ])
    def test_rejected(self, token_adapter, session, operation, args):
        with pytest.raises(UnsupportedOperationError) as exc_info:
            getattr(token_adapter, operation)(*args)
        assert exc_info.value.operation == operation
        assert exc_info.value.path == args[0]
        session.post.assert_not_called()


class TestLifecycle:
    def test_context_manager_closes_session(self, session):
        with make_adapter({**TOKEN_CONFIG, "advertiser_id": "adv"}, session):
            pass
        session.close.assert_called_once()

    def test_injected_cache_left_open(self, session):
        cache = MagicMock(spec=AdvertiserCache)
        cache.get_or_compute.return_value = "adv-9"
        make_adapter(TOKEN_CONFIG, session, cache=cache).close()
        cache.close.assert_not_called()
