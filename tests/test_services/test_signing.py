# tests/test_services/test_signing.py
import hashlib
import hmac
from urllib.parse import parse_qs, urlsplit

import pytest

from memberhub.core.exceptions import ConfigurationError
from memberhub.services.signing import (
    PLAYBACK_SUFFIX,
    compute_token,
    generate_signed_url,
    playback_url,
    thumbnail_url,
    verify_signed_url,
)

SECRET = "s3cret"
BASE = "https://cdn.example.com"
NOW = 1_700_000_000


def _sign(**overrides):
    kwargs = dict(
        resource_id="abc",
        path_suffix="play.mp4",
        ttl_seconds=3600,
        secret_key=SECRET,
        base_url=BASE,
        now=NOW,
    )
    kwargs.update(overrides)
    return generate_signed_url(**kwargs)


def test_url_shape_and_expiry():
    signed = _sign()
    assert signed.expires == NOW + 3600
    assert signed.url == f"{BASE}/abc/play.mp4?token={signed.token}&expires={NOW + 3600}"


def test_token_is_hmac_sha256_of_concatenated_message():
    signed = _sign()
    message = f"{SECRET}abc/play.mp4{NOW + 3600}".encode()
    expected = hmac.new(SECRET.encode(), message, hashlib.sha256).hexdigest()
    assert signed.token == expected
    assert signed.token == signed.token.lower()
    assert len(signed.token) == 64


def test_signing_is_deterministic():
    assert _sign().url == _sign().url
    assert compute_token(SECRET, "abc", "play.mp4", 10) == compute_token(SECRET, "abc", "play.mp4", 10)


def test_every_input_changes_the_token():
    base = _sign().token
    assert _sign(resource_id="abd").token != base
    assert _sign(path_suffix="thumbnail.jpg").token != base
    assert _sign(secret_key="other").token != base
    assert _sign(now=NOW + 1).token != base


def test_trailing_slash_on_base_is_normalized():
    assert _sign(base_url=BASE + "/").url.startswith(f"{BASE}/abc/")


def test_nested_path_suffix_is_allowed():
    signed = _sign(path_suffix="hls/playlist.m3u8")
    assert "/abc/hls/playlist.m3u8?" in signed.url
    assert verify_signed_url(signed.url, secret_key=SECRET, base_url=BASE, now=NOW)


# ── verification ─────────────────────────────────────────────
def test_verify_accepts_fresh_url():
    signed = _sign()
    assert verify_signed_url(signed.url, secret_key=SECRET, base_url=BASE, now=NOW + 10)


def test_verify_rejects_at_and_after_expiry():
    signed = _sign(ttl_seconds=60)
    assert verify_signed_url(signed.url, secret_key=SECRET, base_url=BASE, now=NOW + 59)
    assert not verify_signed_url(signed.url, secret_key=SECRET, base_url=BASE, now=NOW + 60)
    assert not verify_signed_url(signed.url, secret_key=SECRET, base_url=BASE, now=NOW + 61)


def test_verify_rejects_tampering():
    signed = _sign()
    assert not verify_signed_url(signed.url.replace("/abc/", "/abd/"), secret_key=SECRET, base_url=BASE, now=NOW)
    bumped = signed.url.replace(f"expires={signed.expires}", f"expires={signed.expires + 1000}")
    assert not verify_signed_url(bumped, secret_key=SECRET, base_url=BASE, now=NOW)
    assert not verify_signed_url(signed.url, secret_key="wrong", base_url=BASE, now=NOW)


def test_verify_rejects_missing_query_params():
    signed = _sign()
    bare = signed.url.split("?")[0]
    assert not verify_signed_url(bare, secret_key=SECRET, base_url=BASE, now=NOW)
    assert not verify_signed_url(bare + "?token=abc&expires=soon", secret_key=SECRET, base_url=BASE, now=NOW)


def test_verify_without_base_uses_first_path_segment():
    signed = _sign()
    assert verify_signed_url(signed.url, secret_key=SECRET, now=NOW)


# ── argument validation ──────────────────────────────────────
@pytest.mark.parametrize("secret", ["", None])
def test_missing_secret_is_configuration_error(monkeypatch, secret):
    import memberhub.services.signing as mod

    monkeypatch.setattr(mod.settings, "BUNNY_SECURITY_KEY", None)
    with pytest.raises(ConfigurationError) as ei:
        _sign(secret_key=secret)
    assert ei.value.setting == "BUNNY_SECURITY_KEY"


def test_missing_base_is_configuration_error(monkeypatch):
    import memberhub.services.signing as mod

    monkeypatch.setattr(mod.settings, "BUNNY_CDN_URL", None)
    with pytest.raises(ConfigurationError) as ei:
        generate_signed_url(resource_id="abc", path_suffix="play.mp4", ttl_seconds=60, secret_key=SECRET)
    assert ei.value.setting == "BUNNY_CDN_URL"


@pytest.mark.parametrize("rid", ["", "a/b", "..", "a b", "a?b", "a#b"])
def test_invalid_resource_id_rejected(rid):
    with pytest.raises(ValueError):
        _sign(resource_id=rid)


@pytest.mark.parametrize("suffix", ["", "/play.mp4", "a//b", "../secret", "a/./b", "play.mp4?x=1"])
def test_invalid_path_suffix_rejected(suffix):
    with pytest.raises(ValueError):
        _sign(path_suffix=suffix)


@pytest.mark.parametrize("ttl", [0, -1, True])
def test_non_positive_ttl_rejected(ttl):
    with pytest.raises(ValueError):
        _sign(ttl_seconds=ttl)


# ── Bunny conveniences (configured in conftest) ──────────────
def test_playback_and_thumbnail_use_settings():
    play = playback_url("vid-1", now=NOW)
    thumb = thumbnail_url("vid-1", now=NOW)
    assert play.url.startswith("https://vz-test.b-cdn.net/vid-1/play.mp4?")
    assert thumb.url.startswith("https://vz-test.b-cdn.net/vid-1/thumbnail.jpg?")
    assert play.path_suffix == PLAYBACK_SUFFIX

    query = parse_qs(urlsplit(play.url).query)
    assert query["expires"] == [str(NOW + 3600)]
    assert verify_signed_url(play.url, now=NOW)


def test_verify_rejects_swapped_path_suffix():
    signed = _sign(path_suffix="play.mp4")
    swapped = signed.url.replace("/play.mp4?", "/thumbnail.jpg?")
    assert swapped != signed.url
    assert not verify_signed_url(swapped, secret_key=SECRET, base_url=BASE, now=NOW)


def test_explicit_zero_ttl_is_not_replaced_by_default():
    with pytest.raises(ValueError):
        playback_url("vid-1", ttl_seconds=0, now=NOW)
    with pytest.raises(ValueError):
        thumbnail_url("vid-1", ttl_seconds=0, now=NOW)
    assert playback_url("vid-1", ttl_seconds=None, now=NOW).expires == NOW + 3600
    assert playback_url("vid-1", ttl_seconds=60, now=NOW).expires == NOW + 60
