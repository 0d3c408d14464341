"""Unit tests for share token usability rules."""

import itertools
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from snippetbox.domain.model import ShareToken

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_token(**overrides) -> ShareToken:
    data = {"token": "tok", "snippet_id": uuid4(), "created_by": uuid4()}
    data.update(overrides)
    return ShareToken(**data)


class TestShareTokenUsability:
    @pytest.mark.parametrize(
        "active,expired,limit_reached",
        list(itertools.product([True, False], repeat=3)),
    )
    def test_usable_only_when_active_unexpired_and_under_limit(
        self, active, expired, limit_reached
    ):
        """Every combination of the three conditions."""
        # Arrange
        token = make_token(
            is_active=active,
            expires_at=NOW - timedelta(hours=1) if expired else NOW + timedelta(hours=1),
            max_access_count=3,
            access_count=3 if limit_reached else 1,
        )

        # Act
        usable = token.is_usable(NOW)

        # Assert
        assert usable == (active and not expired and not limit_reached)

    def test_expiry_at_exactly_now_is_expired(self):
        token = make_token(expires_at=NOW)

        assert token.is_expired(NOW)
        assert not token.is_usable(NOW)

    def test_no_expiry_never_expires(self):
        token = make_token(expires_at=None)

        assert not token.is_expired(NOW + timedelta(days=3650))

    def test_access_count_at_limit_is_exhausted(self):
        # Arrange
        token = make_token(max_access_count=5, access_count=5)

        # Act / Assert
        assert token.is_access_limit_reached
        assert token.remaining_accesses == 0
        assert not token.is_usable(NOW)

    def test_one_below_limit_is_usable(self):
        token = make_token(max_access_count=5, access_count=4)

        assert token.remaining_accesses == 1
        assert token.is_usable(NOW)

    @pytest.mark.parametrize("max_access_count", [0, -1])
    def test_non_positive_limit_means_unlimited(self, max_access_count):
        token = make_token(max_access_count=max_access_count, access_count=10_000)

        assert not token.has_access_limit
        assert token.remaining_accesses == -1
        assert token.is_usable(NOW)
