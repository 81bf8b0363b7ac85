"""Tests for secret scrubbing."""

from utils.secrets import REDACTED, header_secrets, scrub_secrets


def test_scrub_replaces_every_occurrence():
    assert scrub_secrets("token abc and abc again", ["abc"]) == f"token {REDACTED} and {REDACTED} again"


def test_scrub_ignores_empty_secrets_and_text():
    assert scrub_secrets("nothing here", ["", None]) == "nothing here"
    assert scrub_secrets("", ["abc"]) == ""
    assert scrub_secrets("keep", []) == "keep"


def test_longer_secret_is_redacted_whole():
    assert scrub_secrets("X-Auth: secret-value", ["secret-value", "X-Auth: secret-value"]) == REDACTED


def test_header_secrets_yield_line_and_value():
    assert header_secrets(["X-Auth: abc123", "  ", "novalue:", "bare"]) == [
        "X-Auth: abc123",
        "abc123",
        "novalue:",
        "bare",
    ]


def test_short_secret_grows_text():
    # every redaction of a one-character secret adds two characters
    scrubbed = scrub_secrets("_1/2_\n1", ["1"])
    assert scrubbed == f"_{REDACTED}/2_\n{REDACTED}"
    assert len(scrubbed) == len("_1/2_\n1") + 4
