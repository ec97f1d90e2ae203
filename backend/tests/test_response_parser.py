import json

from app.schemas.modification import AddModification, CancelModification, MoveModification
from app.services.response_parser import parse_model_response


def move_item(**overrides):
    item = {
        "id": "m1",
        "type": "move",
        "description": "Move Math to Tuesday",
        "originalData": {"id": "s1", "day": "Monday", "startTime": "09:00", "endTime": "10:00"},
        "newData": {"day": "Tuesday"},
        "affected": ["Math", "FacultyA"],
    }
    item.update(overrides)
    return item


def reply(modifications, **extra):
    body = {"response": "Done", "modifications": modifications, "conflicts": [], "warnings": []}
    body.update(extra)
    return json.dumps(body)


def test_non_json_reply_degrades_to_free_text():
    raw = "Sorry, I could not understand the request."

    result = parse_model_response(raw)

    assert result.is_degraded
    assert result.degraded.reason == "invalid_json"
    assert result.modification_set.response == raw
    assert result.modification_set.modifications == []
    assert result.modification_set.conflicts == []
    assert result.modification_set.warnings == []


def test_json_that_is_not_an_object_degrades():
    result = parse_model_response("[1, 2, 3]")

    assert result.is_degraded
    assert result.modification_set.response == "[1, 2, 3]"


def test_valid_reply_is_parsed_into_typed_modifications():
    cancel = {
        "id": "m2",
        "type": "cancel",
        "description": "Cancel Physics",
        "originalData": {"id": "s2"},
        "newData": None,
        "affected": ["Physics"],
    }
    add = {
        "id": "m3",
        "type": "add",
        "description": "Add Chemistry",
        "originalData": None,
        "newData": {
            "subject": "Chemistry",
            "faculty": "FacultyC",
            "classroom": "Lab 1",
            "day": "wednesday",
            "startTime": "9:00",
            "endTime": "10:30",
        },
        "affected": ["Chemistry"],
    }

    result = parse_model_response(reply([move_item(), cancel, add], conflicts=["none"]))

    assert not result.is_degraded
    modifications = result.modification_set.modifications
    assert [type(item) for item in modifications] == [MoveModification, CancelModification, AddModification]
    assert modifications[2].newData.day == "Wednesday"
    assert modifications[2].newData.startTime == "09:00"
    assert result.modification_set.conflicts == ["none"]
    assert result.modification_set.warnings == []


def test_markdown_fenced_reply_is_decoded():
    raw = "```json\n" + reply([move_item()]) + "\n```"

    result = parse_model_response(raw)

    assert not result.is_degraded
    assert len(result.modification_set.modifications) == 1


def test_modification_missing_type_is_dropped_with_warning():
    broken = move_item(id="m2")
    del broken["type"]

    result = parse_model_response(reply([move_item(), broken]))

    assert [item.id for item in result.modification_set.modifications] == ["m1"]
    assert len(result.modification_set.warnings) == 1
    assert "'m2'" in result.modification_set.warnings[0]
    assert "type" in result.modification_set.warnings[0]


def test_modification_with_wrong_shape_for_its_kind_is_dropped():
    cancel_with_new_data = {
        "id": "m2",
        "type": "cancel",
        "description": "Cancel",
        "originalData": {"id": "s2"},
        "newData": {"day": "Friday"},
        "affected": [],
    }
    move_without_id = move_item(id="m3", originalData={"day": "Monday"})

    result = parse_model_response(reply([cancel_with_new_data, move_without_id, move_item()]))

    assert [item.id for item in result.modification_set.modifications] == ["m1"]
    assert len(result.modification_set.warnings) == 2


def test_unknown_kind_and_duplicate_ids_are_dropped():
    result = parse_model_response(reply([move_item(), move_item(), move_item(id="m9", type="swap")]))

    assert [item.id for item in result.modification_set.modifications] == ["m1"]
    warnings = result.modification_set.warnings
    assert any("duplicate id" in warning for warning in warnings)
    assert any("unknown type 'swap'" in warning for warning in warnings)


def test_model_warnings_are_kept_before_parser_warnings():
    broken = move_item(id="m2")
    del broken["affected"]

    result = parse_model_response(reply([broken], warnings=["Room 4 is under maintenance"]))

    assert result.modification_set.warnings[0] == "Room 4 is under maintenance"
    assert len(result.modification_set.warnings) == 2


def test_non_list_modifications_is_reported():
    result = parse_model_response(json.dumps({"response": "ok", "modifications": {"id": "m1"}}))

    assert not result.is_degraded
    assert result.modification_set.modifications == []
    assert result.modification_set.warnings == ["Ignored 'modifications' because it is not a list."]
