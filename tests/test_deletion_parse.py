"""Unit tests for delete request validation."""

from __future__ import annotations

from typing import Any

import pytest
from bson import ObjectId

from scholaris.domain.academics.entities import GRADE_SECTIONS, INSTITUTES
from scholaris.foundation.application.deletion import DeleteCommand, parse_delete_request
from scholaris.foundation.domain.exceptions import InvalidRequestError

A = "64b7f0c2e4b0a1a2b3c4d5e6"
B = "64b7f0c2e4b0a1a2b3c4d5e7"


def _reject(body: Any, message: str) -> None:
    with pytest.raises(InvalidRequestError) as info:
        parse_delete_request(body, INSTITUTES)
    assert info.value.message == message


class TestParseDeleteRequest:
    @pytest.mark.unit
    def test_plain_delete(self) -> None:
        command = parse_delete_request({"ids": [A, B]}, INSTITUTES)
        assert command == DeleteCommand(ids=(A, B))

    @pytest.mark.unit
    def test_ids_deduplicated_and_canonicalised(self) -> None:
        command = parse_delete_request({"ids": [A.upper(), A, B]}, INSTITUTES)
        assert command.ids == (A, B)

    @pytest.mark.unit
    @pytest.mark.parametrize("body", [None, [], "ids", {}, {"ids": []}, {"ids": A}])
    def test_ids_required(self, body: Any) -> None:
        _reject(body, "Institute ID(s) required")

    @pytest.mark.unit
    def test_label_used_in_required_message(self) -> None:
        with pytest.raises(InvalidRequestError, match="Grade Section ID\\(s\\) required"):
            parse_delete_request({"ids": []}, GRADE_SECTIONS)

    @pytest.mark.unit
    def test_malformed_id(self) -> None:
        with pytest.raises(InvalidRequestError, match="Invalid record ID"):
            parse_delete_request({"ids": [A, "not-an-id"]}, INSTITUTES)

    @pytest.mark.unit
    @pytest.mark.parametrize("archive", [True, False])
    def test_archive_flag(self, archive: bool) -> None:
        command = parse_delete_request({"ids": [A], "archive": archive}, INSTITUTES)
        assert command.archive is archive

    @pytest.mark.unit
    def test_archive_absent_is_none(self) -> None:
        assert parse_delete_request({"ids": [A]}, INSTITUTES).archive is None

    @pytest.mark.unit
    @pytest.mark.parametrize("archive", ["true", 1, None])
    def test_archive_must_be_boolean(self, archive: Any) -> None:
        _reject(
            {"ids": [A], "archive": archive},
            "The archive parameter must be a boolean (true or false).",
        )

    @pytest.mark.unit
    def test_archive_with_transfer_rejected(self) -> None:
        _reject(
            {"ids": [A], "archive": True, "transferTo": B},
            "Only one of archive or transfer can be requested at a time.",
        )

    @pytest.mark.unit
    def test_delete_dependents_must_be_boolean(self) -> None:
        _reject(
            {"ids": [A], "deleteDependents": "yes"},
            "The deleteDependents parameter must be a boolean (true or false).",
        )

    @pytest.mark.unit
    def test_delete_dependents_with_transfer_rejected(self) -> None:
        _reject(
            {"ids": [A], "deleteDependents": True, "transferTo": B},
            "Only one of deleteDependents or transfer can be requested at a time.",
        )

    @pytest.mark.unit
    def test_delete_dependents_false_with_transfer_allowed(self) -> None:
        command = parse_delete_request(
            {"ids": [A], "deleteDependents": False, "transferTo": B}, INSTITUTES
        )
        assert command.transfer_to == B
        assert command.delete_dependents is False

    @pytest.mark.unit
    def test_transfer_needs_exactly_one_source(self) -> None:
        _reject(
            {"ids": [A, B], "transferTo": str(ObjectId())},
            "Please select one institute to transfer dependents from.",
        )

    @pytest.mark.unit
    def test_transfer_to_self_rejected(self) -> None:
        _reject(
            {"ids": [A], "transferTo": A.upper()},
            "Cannot transfer dependents of a institute to itself.",
        )

    @pytest.mark.unit
    def test_transfer_target_must_be_valid(self) -> None:
        with pytest.raises(InvalidRequestError, match="Invalid record ID"):
            parse_delete_request({"ids": [A], "transferTo": "elsewhere"}, INSTITUTES)

    @pytest.mark.unit
    def test_empty_transfer_target_ignored(self) -> None:
        command = parse_delete_request({"ids": [A, B], "transferTo": ""}, INSTITUTES)
        assert command.transfer_to is None

    @pytest.mark.unit
    def test_error_carries_entity_type(self) -> None:
        with pytest.raises(InvalidRequestError) as info:
            parse_delete_request({}, INSTITUTES)
        assert info.value.context["entity_type"] == "institutes"
