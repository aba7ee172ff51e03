"""
Unit tests for utility helpers and data processing.
"""

import asyncio
import string
import time

import pytest

from servicekit.errors import InvalidInputError, NetworkError
from servicekit.processing import process_data
from servicekit.utils import (
    current_timestamp,
    format_timestamp,
    generate_random_string,
    retry_with_backoff,
    retry_with_backoff_async,
    sanitize_string,
    validate_email,
)


class Flaky:
    """Fails a given number of times, then returns a value."""

    def __init__(self, failures: int, result="ok"):
        self.failures = failures
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise NetworkError(f"attempt {self.calls} failed")
        return self.result


class TestProcessData:
    """Tests for process_data."""

    def test_uppercases_with_prefix(self):
        assert process_data("hello") == "Processed: HELLO"

    def test_keeps_whitespace_and_symbols(self):
        assert process_data("hello world!") == "Processed: HELLO WORLD!"

    def test_empty_input(self):
        with pytest.raises(InvalidInputError) as exc_info:
            process_data("")
        assert str(exc_info.value) == "Invalid input: Input cannot be empty"


class TestTimestamps:
    """Tests for timestamp helpers."""

    def test_current_timestamp(self):
        before = int(time.time())
        assert before <= current_timestamp() <= before + 1

    def test_format_epoch(self):
        assert format_timestamp(0) == "1970-01-01T00:00:00Z"

    def test_format_known_time(self):
        assert format_timestamp(1_700_000_000) == "2023-11-14T22:13:20Z"

    def test_format_out_of_range(self):
        assert format_timestamp(10 ** 20) == "invalid-timestamp"


class TestValidateEmail:
    """Tests for validate_email."""

    @pytest.mark.parametrize("email", ["test@example.com", "a.b@c.io"])
    def test_valid(self, email):
        assert validate_email(email)

    @pytest.mark.parametrize("email", [
        "invalid-email",     # no @
        "a@b.c",             # too short
        "user@localhost",    # no dot
        "@example.com",      # empty local part
        "user.name@",        # empty domain
    ])
    def test_invalid(self, email):
        assert not validate_email(email)


class TestSanitizeString:
    """Tests for sanitize_string."""

    def test_strips_markup(self):
        assert sanitize_string("Hello <script>alert('xss')</script>") == "Hello scriptalertxssscript"

    def test_keeps_allowed_symbols(self):
        assert sanitize_string("john.doe-1_x@mail.com ok") == "john.doe-1_x@mail.com ok"


class TestGenerateRandomString:
    """Tests for generate_random_string."""

    def test_length_and_alphabet(self):
        value = generate_random_string(32)

        assert len(value) == 32
        assert set(value) <= set(string.ascii_letters + string.digits)

    def test_zero_length(self):
        assert generate_random_string(0) == ""

    def test_values_differ(self):
        assert generate_random_string(32) != generate_random_string(32)


class TestRetryWithBackoff:
    """Tests for retry_with_backoff."""

    def test_first_attempt_succeeds(self):
        sleeps = []
        operation = Flaky(failures=0)

        assert retry_with_backoff(operation, 3, 1.0, sleep=sleeps.append) == "ok"
        assert operation.calls == 1
        assert sleeps == []

    def test_delay_doubles(self):
        """Test exponential backoff between attempts."""
        sleeps = []
        operation = Flaky(failures=3)

        assert retry_with_backoff(operation, 3, 0.5, sleep=sleeps.append) == "ok"
        assert operation.calls == 4
        assert sleeps == [0.5, 1.0, 2.0]

    def test_reraises_last_error(self):
        """Test that attempts are max_retries + 1."""
        sleeps = []
        operation = Flaky(failures=10)

        with pytest.raises(NetworkError, match="attempt 3 failed"):
            retry_with_backoff(operation, 2, 1.0, sleep=sleeps.append)

        assert operation.calls == 3
        assert sleeps == [1.0, 2.0]

    def test_zero_retries(self):
        operation = Flaky(failures=1)

        with pytest.raises(NetworkError):
            retry_with_backoff(operation, 0, 1.0, sleep=lambda _: None)
        assert operation.calls == 1


class TestRetryWithBackoffAsync:
    """Tests for retry_with_backoff_async."""

    def test_awaits_coroutines(self):
        calls = []

        async def operation():
            calls.append(1)
            if len(calls) < 2:
                raise NetworkError("not yet")
            return "done"

        result = asyncio.run(retry_with_backoff_async(operation, 3, 0.001))

        assert result == "done"
        assert len(calls) == 2

    def test_plain_callable(self):
        operation = Flaky(failures=1)

        assert asyncio.run(retry_with_backoff_async(operation, 1, 0.001)) == "ok"
        assert operation.calls == 2

    def test_reraises(self):
        operation = Flaky(failures=5)

        with pytest.raises(NetworkError):
            asyncio.run(retry_with_backoff_async(operation, 1, 0.001))
        assert operation.calls == 2
