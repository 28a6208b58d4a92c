"""Tests for search response classification."""

import pytest

from intel471_lookup.models import (
    ClassifiedError,
    Entity,
    EntityType,
    ErrorKind,
    Hit,
    Miss,
    UnexpectedResponse,
)
from intel471_lookup.search.classifier import RECOGNIZED_FIELDS, classify, is_miss

ENTITY = Entity("1.2.3.4", EntityType.IPV4, 1)


class TestIsMiss:
    """Tests for hit-body miss detection."""

    def test_none_body_is_miss(self):
        assert is_miss(None) is True

    def test_empty_dict_is_miss(self):
        assert is_miss({}) is True

    def test_non_dict_body_is_miss(self):
        """Test that a non-object body never counts as a hit."""
        assert is_miss("not json") is True
        assert is_miss([{"indicators": [1]}]) is True

    def test_all_recognized_fields_empty(self, empty_body):
        assert is_miss(empty_body) is True

    def test_unrecognized_non_empty_field_is_miss(self):
        """Test that only recognized fields count."""
        assert is_miss({"somethingElse": [1, 2, 3], "indicators": []}) is True

    def test_non_list_recognized_field_is_miss(self):
        """Test that recognized fields must be lists to count."""
        assert is_miss({"indicators": {"count": 3}, "actors": "apt"}) is True

    @pytest.mark.parametrize("field_name", RECOGNIZED_FIELDS)
    def test_each_recognized_field_makes_a_hit(self, field_name):
        """Test that any single non-empty recognized list is a hit."""
        assert is_miss({field_name: [{"id": 1}]}) is False

    def test_nids_checked_by_its_own_name(self):
        """Test that presence and length are checked on the same field."""
        assert is_miss({"nidsList": [], "nids": None}) is True
        assert is_miss({"nidsList": [], "nids": [{"rule": "alert tcp"}]}) is False


class TestClassify:
    """Tests for status code classification."""

    def test_200_with_data_is_hit(self, hit_body):
        outcome = classify(200, hit_body, ENTITY)

        assert isinstance(outcome, Hit)
        assert outcome.entity is ENTITY
        assert outcome.body == hit_body

    def test_200_without_data_is_miss(self, empty_body):
        outcome = classify(200, empty_body, ENTITY)

        assert isinstance(outcome, Miss)
        assert outcome.entity is ENTITY

    def test_200_with_no_body_is_miss(self):
        assert isinstance(classify(200, None, ENTITY), Miss)

    @pytest.mark.parametrize("status", [202, 404])
    def test_miss_statuses(self, status):
        outcome = classify(status, {"message": "whatever"}, ENTITY)
        assert outcome == Miss(ENTITY)

    def test_401_unauthorized(self):
        outcome = classify(401, {"error": "Unauthorized"}, ENTITY)

        assert isinstance(outcome, ClassifiedError)
        assert outcome.kind == ErrorKind.UNAUTHORIZED
        assert "token was missing or invalid" in outcome.message
        assert outcome.status == 401
        assert outcome.entity is ENTITY

    def test_403_access_denied(self):
        outcome = classify(403, None, ENTITY)

        assert outcome.kind == ErrorKind.ACCESS_DENIED
        assert outcome.message == "Not enough access permissions."

    def test_429_rate_limited(self):
        outcome = classify(429, None, ENTITY)

        assert outcome.kind == ErrorKind.RATE_LIMITED
        assert "Daily number of requests exceeds limit" in outcome.message

    @pytest.mark.parametrize("status", [500, 502, 503, 504])
    def test_server_errors(self, status):
        """Test that every listed 5xx status maps to a server error."""
        outcome = classify(status, None, ENTITY)

        assert isinstance(outcome, ClassifiedError)
        assert outcome.kind == ErrorKind.SERVER_ERROR
        assert "Something went wrong on our End" in outcome.message
        assert outcome.status == status

    @pytest.mark.parametrize("status", [400, 405, 418, 501, 505])
    def test_unmapped_status_is_unexpected(self, status):
        body = {"error": "Bad Request", "message": "text is required"}
        outcome = classify(status, body, ENTITY)

        assert isinstance(outcome, UnexpectedResponse)
        assert outcome.status == status
        assert outcome.raw == body
        assert outcome.detail == "Bad Request: text is required"

    def test_unexpected_with_non_dict_body(self):
        """Test that the detail falls back to the raw text."""
        outcome = classify(418, "I'm a teapot", ENTITY)

        assert isinstance(outcome, UnexpectedResponse)
        assert outcome.detail == "I'm a teapot"

    def test_unexpected_with_missing_fields(self):
        outcome = classify(400, {}, ENTITY)
        assert outcome.detail == "None: None"
