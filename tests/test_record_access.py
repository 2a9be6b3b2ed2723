from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from app.core import config
from app.features.record_access.schemas import RecordAccessResult, UserRecordAccessRow
from app.features.record_access.service import (
    access_result,
    backfill_missing,
    check_record_access,
    partition_record_ids,
)
from tests.helpers.crm_fakes import CURRENT_USER, OTHER_USER


def access_row(record_id: str, read=False, edit=False, delete=False, transfer=False, level="Read") -> dict:
    return {
        "RecordId": record_id,
        "HasReadAccess": read,
        "HasEditAccess": edit,
        "HasDeleteAccess": delete,
        "HasTransferAccess": transfer,
        "MaxAccessLevel": level,
    }


def test_partition_groups_by_prefix_and_drops_repeats() -> None:
    partitions = partition_record_ids(["001AAA", "003CCC", "001BBB", "001AAA"])

    assert partitions == {"001": ["001AAA", "001BBB"], "003": ["003CCC"]}


def test_access_result_letters_follow_canonical_order() -> None:
    row = UserRecordAccessRow.model_validate(
        access_row("001AAA", transfer=True, read=True, delete=True, level="All")
    )

    assert access_result(row) == RecordAccessResult(
        object_type_prefix="001", permissions=["r", "d", "t"], max_access_level="All"
    )


def test_access_result_without_letters_reports_none() -> None:
    row = UserRecordAccessRow.model_validate(access_row("001AAA", level="Read"))

    assert access_result(row).max_access_level == "None"
    assert access_result(row).permissions == []


def test_backfill_adds_missing_ids_only() -> None:
    found = {"001AAA": RecordAccessResult(object_type_prefix="001", permissions=["r"], max_access_level="Read")}

    results = backfill_missing(found, ["001AAA", "003CCC"])

    assert results["001AAA"].permissions == ["r"]
    assert results["003CCC"] == RecordAccessResult(object_type_prefix="003", permissions=[], max_access_level="None")


def test_check_record_access_queries_once_per_prefix(crm_session) -> None:
    crm_session.access_rows[CURRENT_USER["Id"]] = [access_row("001AAA", read=True)]

    results = asyncio.run(
        check_record_access(crm_session, CURRENT_USER["Id"], ["001AAA", "001BBB", "003CCC"])
    )

    assert set(results) == {"001AAA", "001BBB", "003CCC"}
    assert len(crm_session.queries_on("UserRecordAccess")) == 2


def test_check_record_access_maps_long_ids_back_to_requested(crm_session) -> None:
    short_id = "001000000000001"
    crm_session.access_rows[CURRENT_USER["Id"]] = [access_row(short_id + "AAA", read=True, edit=True, level="Edit")]

    results = asyncio.run(check_record_access(crm_session, CURRENT_USER["Id"], [short_id]))

    assert set(results) == {short_id}
    assert results[short_id].permissions == ["r", "e"]
    assert results[short_id].max_access_level == "Edit"


def test_record_access_backfills_records_without_rows(client, crm_session) -> None:
    crm_session.access_rows[CURRENT_USER["Id"]] = [access_row("001AAA", read=True, edit=True, level="Edit")]

    response = client.post("/record-access", json={"recordIds": ["001AAA", "001BBB", "003CCC"]})

    assert response.status_code == 200
    payload = response.json()
    assert payload["userId"] == CURRENT_USER["Id"]
    assert payload["username"] == CURRENT_USER["Username"]
    datetime.fromisoformat(payload["timestamp"].replace("Z", "+00:00"))
    assert payload["results"] == {
        "001AAA": {"objectTypePrefix": "001", "permissions": ["r", "e"], "maxAccessLevel": "Edit"},
        "001BBB": {"objectTypePrefix": "001", "permissions": [], "maxAccessLevel": "None"},
        "003CCC": {"objectTypePrefix": "003", "permissions": [], "maxAccessLevel": "None"},
    }


def test_record_access_for_other_user(client, crm_session) -> None:
    crm_session.access_rows[OTHER_USER["Id"]] = [access_row("500XYZ", read=True, transfer=True, level="All")]
    crm_session.access_rows[CURRENT_USER["Id"]] = [access_row("500XYZ", read=True, level="Read")]

    response = client.post(f"/record-access/{OTHER_USER['Id']}", json={"recordIds": ["500XYZ"]})

    assert response.status_code == 200
    payload = response.json()
    assert payload["username"] == OTHER_USER["Username"]
    assert payload["results"]["500XYZ"]["permissions"] == ["r", "t"]


def test_record_access_has_one_entry_per_id(client) -> None:
    record_ids = [f"{prefix}{n:012d}" for prefix in ("001", "003", "006", "500") for n in range(25)]

    response = client.post("/record-access", json={"recordIds": record_ids})

    assert response.status_code == 200
    assert sorted(response.json()["results"]) == sorted(record_ids)


@pytest.mark.parametrize(
    "body",
    [
        {"recordIds": []},
        {"recordIds": [f"001{n:012d}" for n in range(101)]},
        {"recordIds": "001AAA"},
        {"recordIds": [1, 2]},
        {"recordIds": [""]},
        {"ids": ["001AAA"]},
        ["001AAA"],
    ],
)
def test_record_access_rejects_invalid_bodies_without_remote_calls(client, crm_provider, crm_session, body) -> None:
    response = client.post("/record-access", json=body)

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert crm_provider.logins == 0
    assert crm_session.queries == []


def test_record_access_strict_ids(client, crm_provider, monkeypatch) -> None:
    monkeypatch.setattr(config, "STRICT_ID_VALIDATION", True)

    rejected = client.post("/record-access", json={"recordIds": ["001AAA"]})
    accepted = client.post("/record-access", json={"recordIds": ["001000000000001AAA"]})

    assert rejected.status_code == 400
    assert accepted.status_code == 200
    assert crm_provider.logins == 1


def test_record_access_unknown_user_is_404(client, crm_session) -> None:
    response = client.post("/record-access/005000000000999AAA", json={"recordIds": ["001AAA"]})

    assert response.status_code == 404
    assert crm_session.queries_on("UserRecordAccess") == []


def test_record_access_lookup_failure_fails_whole_request(client, crm_session) -> None:
    crm_session.access_rows[CURRENT_USER["Id"]] = [access_row("001AAA", read=True)]
    crm_session.failing_table = "UserRecordAccess"

    response = client.post("/record-access", json={"recordIds": ["001AAA", "003CCC"]})

    assert response.status_code == 500
    payload = response.json()
    assert payload["code"] == "UPSTREAM_ERROR"
    assert "results" not in payload
