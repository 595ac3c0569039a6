import itertools
import logging

import pytest

from dropboxfs._signer import BearerSigner, OAuth1Signer, signer_for
from dropboxfs.config import OAuth1Credentials, OAuth2Credentials


@pytest.fixture
def rfc_signer():
    # http://oauth.net/core/1.0/#sig_base_example
    return OAuth1Signer(OAuth1Credentials(
        app_key="dpf43f3p2l4k3l03",
        app_secret="kd94hf93k423kf44",
        access_token="nnch734d00sl2jdk",
        access_token_secret="pfkkdhi9sl3r4s00",
    ))


RFC_NONCE = "kllo9940pd9333jh"
RFC_TIMESTAMP = "1191242096"
RFC_PARAMS = (
    "file=vacation.jpg&oauth_consumer_key=dpf43f3p2l4k3l03&oauth_nonce=kllo9940pd9333jh"
    "&oauth_signature_method=HMAC-SHA1&oauth_timestamp=1191242096&oauth_token=nnch734d00sl2jdk"
    "&oauth_version=1.0&size=original"
)


def test_rfc_normalized_parameters(rfc_signer):
    params = rfc_signer.normalized_parameters(
        [("file", "vacation.jpg"), ("size", "original")], RFC_NONCE, RFC_TIMESTAMP
    )
    assert params == RFC_PARAMS


def test_rfc_signature(rfc_signer):
    signature = rfc_signer.signature("GET", "http://photos.example.net/photos", RFC_PARAMS)
    assert signature == "tR3+Ty81lMeYAr/Fid0kMTYa/WM="


def test_normalized_parameters_ignore_input_order(rfc_signer):
    query = [("file", "vacation.jpg"), ("size", "original"), ("a", "1"), ("zz", "x y")]
    results = {
        rfc_signer.normalized_parameters(list(perm), RFC_NONCE, RFC_TIMESTAMP)
        for perm in itertools.permutations(query)
    }
    assert len(results) == 1


def test_twitter_example():
    # https://dev.twitter.com/docs/auth/creating-signature
    signer = OAuth1Signer(OAuth1Credentials(
        app_key="xvz1evFS4wEEPTGEFPHBog",
        app_secret="kAcSOqF21Fu85e7zjz7ZN2U4ZRhfV3WpwPAoE3Z7kBw",
        access_token="370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb",
        access_token_secret="LswwdoUaIvS8ltyTt5jkRh4J50vUPVVHtR2YPi5kE",
    ))
    params = signer.normalized_parameters(
        [
            ("status", "Hello Ladies + Gentlemen, a signed OAuth request!"),
            ("include_entities", "true"),
        ],
        "kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg",
        "1318622958",
    )
    assert params == (
        "include_entities=true&oauth_consumer_key=xvz1evFS4wEEPTGEFPHBog"
        "&oauth_nonce=kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg"
        "&oauth_signature_method=HMAC-SHA1&oauth_timestamp=1318622958"
        "&oauth_token=370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb"
        "&oauth_version=1.0&status=Hello%20Ladies%20%2B%20Gentlemen%2C%20a%20signed%20OAuth%20request%21"
    )

    url = "https://api.twitter.com/1/statuses/update.json"
    assert signer.base_string("POST", url, params) == (
        "POST&https%3A%2F%2Fapi.twitter.com%2F1%2Fstatuses%2Fupdate.json&include_entities"
        "%3Dtrue%26oauth_consumer_key%3Dxvz1evFS4wEEPTGEFPHBog%26oauth_nonce%3DkYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg"
        "%26oauth_signature_method%3DHMAC-SHA1%26oauth_timestamp%3D1318622958%26oauth_token"
        "%3D370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb%26oauth_version%3D1.0"
        "%26status%3DHello%2520Ladies%2520%252B%2520Gentlemen%252C%2520a%2520signed%2520OAuth%2520request%2521"
    )
    assert signer.signature("POST", url, params) == "tnnArxj06cWHq44gCs1OSKk/jLY="


def test_authorization_header_layout(rfc_signer):
    header = rfc_signer.authorization(
        "GET",
        "http://photos.example.net/photos",
        [("file", "vacation.jpg"), ("size", "original")],
        nonce=RFC_NONCE,
        timestamp=RFC_TIMESTAMP,
    )
    assert header == (
        'OAuth oauth_version="1.0", oauth_signature_method="HMAC-SHA1", '
        'oauth_nonce="kllo9940pd9333jh", oauth_timestamp="1191242096", '
        'oauth_consumer_key="dpf43f3p2l4k3l03", oauth_token="nnch734d00sl2jdk", '
        'oauth_signature="tR3%2BTy81lMeYAr%2FFid0kMTYa%2FWM%3D"'
    )


def test_authorization_generates_timestamp_and_nonce():
    signer = OAuth1Signer(
        OAuth1Credentials("k", "s", "t", "ts"),
        clock=lambda: 1700000000.7,
        nonce_factory=lambda ts: f"{ts}*42",
    )
    header = signer.authorization("GET", "https://api.dropboxapi.com/2/files/download")
    assert 'oauth_timestamp="1700000000"' in header
    assert 'oauth_nonce="1700000000%2A42"' in header


def test_default_nonces_differ_between_calls():
    signer = OAuth1Signer(OAuth1Credentials("k", "s", "t", "ts"), clock=lambda: 1700000000)
    nonces = set()
    for _ in range(20):
        header = signer.authorization("GET", "https://example.com/x")
        nonces.add(header.split('oauth_nonce="')[1].split('"')[0])
    assert len(nonces) > 1


def test_bearer_signer_ignores_request():
    signer = BearerSigner(OAuth2Credentials("k", "s", "token-abc"))
    assert signer.authorization("POST", "https://x/y", [("a", "b")]) == "Bearer token-abc"


def test_signer_for_picks_scheme():
    assert isinstance(signer_for(OAuth1Credentials("k", "s", "t", "ts")), OAuth1Signer)
    assert isinstance(signer_for(OAuth2Credentials("k", "s", "t")), BearerSigner)


def test_signing_log_leaves_out_secrets(caplog):
    signer = OAuth1Signer(OAuth1Credentials("app-key", "app-secret", "user-token", "token-secret"))
    with caplog.at_level(logging.DEBUG, logger="dropboxfs._signer"):
        signer.authorization("GET", "https://api.dropboxapi.com/2/files/download", [("arg", "{}")])
    assert "files/download" in caplog.text
    assert "user-token" not in caplog.text
    assert "oauth_signature" not in caplog.text
