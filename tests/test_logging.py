"""Tests for logging with secret redaction."""

import logging

import pytest

from gho.logging import SecretRedactingFilter, setup_logging


class TestSecretRedaction:
    """Tests for secret redaction filter."""

    @pytest.fixture
    def filter(self) -> SecretRedactingFilter:
        """Create a redaction filter."""
        return SecretRedactingFilter()

    def test_redact_ghp_token(self, filter: SecretRedactingFilter) -> None:
        """Test redacting ghp_ tokens (20+ chars after prefix)."""
        result = filter._redact("Found ghp_abcdefghijklmnopqrstuvwxyz12")
        assert "ghp_" not in result
        assert "[REDACTED_GH_TOKEN]" in result

    def test_redact_fine_grained_pat(self, filter: SecretRedactingFilter) -> None:
        """Test redacting fine-grained personal access tokens."""
        result = filter._redact("token github_pat_11ABCDEFG_abcdefghijk")
        assert "github_pat_" not in result

    def test_redact_bearer_token(self, filter: SecretRedactingFilter) -> None:
        """Test redacting Bearer tokens."""
        result = filter._redact("Bearer my-secret-token-here")
        assert "my-secret-token-here" not in result
        assert "Bearer [REDACTED]" in result

    def test_redact_authorization_header(self, filter: SecretRedactingFilter) -> None:
        """Test redacting Authorization headers."""
        result = filter._redact("Headers: {'Authorization: token123'}")
        assert "token123" not in result

    def test_redact_token_param(self, filter: SecretRedactingFilter) -> None:
        """Test redacting token= parameters."""
        result = filter._redact("Request with token=secret123 param")
        assert "secret123" not in result
        assert "[REDACTED]" in result

    def test_preserve_normal_text(self, filter: SecretRedactingFilter) -> None:
        """Test that text without secrets is untouched."""
        text = "Cloning acme/widgets into ./widgets"
        assert filter._redact(text) == text

    def test_filter_redacts_args(self, filter: SecretRedactingFilter) -> None:
        """Test string arguments of a record are redacted."""
        record = logging.LogRecord(
            name="gho",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Stored %s for %s",
            args=("ghp_abcdefghijklmnopqrstuvwxyz12", "personal"),
            exc_info=None,
        )

        assert filter.filter(record) is True
        assert "ghp_" not in record.getMessage()
        assert "personal" in record.getMessage()

    def test_filter_redacts_dict_args(self, filter: SecretRedactingFilter) -> None:
        """Test mapping arguments of a record are redacted."""
        record = logging.LogRecord(
            name="gho",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="header %(auth)s",
            args=({"auth": "Bearer abc.def"},),
            exc_info=None,
        )

        filter.filter(record)

        assert "abc.def" not in record.getMessage()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_default_level_is_warning(self) -> None:
        """Test only warnings and above are shown by default."""
        setup_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_verbose_enables_debug(self) -> None:
        """Test verbose switches to debug."""
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG
        setup_logging()

    def test_filter_added_once(self) -> None:
        """Test repeated setup does not stack redaction filters."""
        setup_logging()
        setup_logging()

        for handler in logging.getLogger().handlers:
            count = sum(isinstance(f, SecretRedactingFilter) for f in handler.filters)
            assert count <= 1

    def test_http_libraries_quiet(self) -> None:
        """Test httpx request logging stays off in verbose mode."""
        setup_logging(verbose=True)
        assert logging.getLogger("httpx").level == logging.WARNING
        setup_logging()
