import base64
import json

import pytest

from quote import parse_quote
from sharing import decode_quote, encode_quote, quote_from_url, share_url


def test_encode_decode_round_trip(quote_json):
    q = parse_quote(quote_json)
    assert decode_quote(encode_quote(q)) == q


def test_token_is_url_safe_and_unpadded(base_quote):
    token = encode_quote(base_quote)
    assert "=" not in token
    assert "+" not in token
    assert "/" not in token


def test_decode_accepts_padded_tokens(base_quote):
    payload = json.dumps(base_quote.to_dict()).encode()
    padded = base64.urlsafe_b64encode(payload).decode()
    assert decode_quote(padded) == base_quote


@pytest.mark.parametrize(
    "token",
    [
        "",
        "not base64 at all!",
        base64.urlsafe_b64encode(b"\xff\xfe\xfd").decode(),
        base64.urlsafe_b64encode(b"{broken json").decode(),
        base64.urlsafe_b64encode(b'{"vehicle": {"purchasePrice": 1}}').decode(),
    ],
)
def test_invalid_tokens_decode_to_none(token):
    assert decode_quote(token) is None


def test_share_url_round_trip(base_quote):
    url = share_url(base_quote, "https://example.com/estimator/")
    assert url.startswith("https://example.com/estimator/?quote=")
    assert quote_from_url(url) == base_quote


def test_url_without_token():
    assert quote_from_url("https://example.com/estimator/") is None


def test_huge_number_token_decodes_to_none(quote_json):
    text = json.dumps(quote_json).replace('"purchasePrice": 48000', '"purchasePrice": 1' + "0" * 400)
    token = base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")
    assert decode_quote(token) is None


def test_non_ascii_token_decodes_to_none():
    assert decode_quote("ünïcode") is None
