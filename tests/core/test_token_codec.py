import base64
import json

import pytest
from tx_context.core.token_codec import (
    CONTEXT_DELIMITER,
    NO_CONTEXT,
    combine_transaction_id,
    context_from_transaction_id,
    decode_context,
    encode_context,
    new_transaction_id,
    split_transaction_id,
)
from tx_context.exceptions import ContextDecodeError, ContextError, ContextSerializationError


@pytest.mark.parametrize(
    "context",
    [
        {},
        {"requestId": "abc123"},
        {"user": {"id": 7, "scores": [1.5, -2, 0]}, "flags": [True, False, None]},
        {"greeting": "grüezi ✓", "empty": "", "nested": {"deeper": {"list": [{}, []]}}},
    ],
)
def test_round_trip(context):
    """Decoding an encoded context yields a deeply equal value."""
    assert decode_context(encode_context(context)) == context


def test_encoded_suffix_is_identifier_safe(sample_context):
    """The suffix uses the URL-safe alphabet, without padding and without the delimiter."""
    # Enough non-ASCII to force '-' / '_' / padding candidates in plain base64
    context = dict(sample_context, blob="ÿ" * 31 + "?&=/+")
    suffix = encode_context(context)

    assert CONTEXT_DELIMITER not in suffix
    assert "=" not in suffix
    assert "+" not in suffix
    assert "/" not in suffix
    assert decode_context(suffix) == context


def test_empty_context_is_not_no_context():
    """An empty mapping round-trips as an empty mapping, not as the no-context sentinel."""
    decoded = decode_context(encode_context({}))
    assert decoded == {}
    assert decoded is not NO_CONTEXT


@pytest.mark.parametrize("suffix", [None, ""])
def test_decode_absent_suffix_returns_no_context(suffix):
    assert decode_context(suffix) is NO_CONTEXT


def test_decode_accepts_padded_suffix():
    padded = base64.urlsafe_b64encode(json.dumps({"a": 1}).encode()).decode()
    assert padded.endswith("=")
    assert decode_context(padded) == {"a": 1}


@pytest.mark.parametrize(
    "suffix",
    [
        "%%%not-base64%%%",
        base64.urlsafe_b64encode(b"not json at all").decode().rstrip("="),
        base64.urlsafe_b64encode(b"\xff\xfe\xfd").decode().rstrip("="),
        "a",
    ],
)
def test_decode_corrupt_suffix_raises(suffix):
    with pytest.raises(ContextDecodeError) as exc_info:
        decode_context(suffix)

    assert isinstance(exc_info.value, ContextError)
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize(
    "context",
    [
        None,
        {"tags": {"a", "b"}},
        {"payload": b"raw bytes"},
        {"handler": object()},
        {"ratio": float("nan")},
        {"s": "\ud800"},
    ],
)
def test_encode_unserializable_context_raises(context):
    with pytest.raises(ContextSerializationError):
        encode_context(context)


def test_split_transaction_id():
    assert split_transaction_id("abc") == ("abc", None)
    assert split_transaction_id("abc?xyz") == ("abc", "xyz")
    assert split_transaction_id("abc?") == ("abc", "")


def test_combine_appends_suffix():
    assert combine_transaction_id("abc", "xyz") == "abc?xyz"


def test_combine_replaces_existing_suffix_and_keeps_prefix():
    first = combine_transaction_id("prefix-1", encode_context({"v": 1}))
    second = combine_transaction_id(first, encode_context({"v": 2}))

    assert second.startswith("prefix-1?")
    assert second.count(CONTEXT_DELIMITER) == 1
    assert context_from_transaction_id(second) == {"v": 2}


def test_context_from_unsuffixed_transaction_id():
    assert context_from_transaction_id("never-suffixed") is NO_CONTEXT
    assert context_from_transaction_id("bare-delimiter?") is NO_CONTEXT


def test_context_from_corrupt_transaction_id_reports_the_id():
    with pytest.raises(ContextDecodeError) as exc_info:
        context_from_transaction_id("abc?%%%")
    assert exc_info.value.transaction_id == "abc?%%%"


def test_new_transaction_id_is_unique_and_unsuffixed():
    first, second = new_transaction_id(), new_transaction_id()
    assert first != second
    assert CONTEXT_DELIMITER not in first
    assert context_from_transaction_id(first) is NO_CONTEXT
