import pytest

from idverify.application.requests import (
    CompareFacesRequest,
    ProcessDocumentRequest,
    StartLivenessSessionRequest,
    VerifyLivenessRequest,
    parse_request,
)
from idverify.domain.errors import InvalidRequestError
from idverify.domain.keys import is_liveness_scoped, is_user_scoped


def test_parse_each_variant():
    assert parse_request({"action": "process_document", "documentKey": "users/u/d.jpg", "userId": "u"}) == \
        ProcessDocumentRequest(document_key="users/u/d.jpg", user_id="u")
    assert parse_request({"action": "start_liveness_session", "userId": "u"}) == StartLivenessSessionRequest(user_id="u")
    assert parse_request({"action": "verify_liveness", "sessionId": "s", "userId": "u"}) == \
        VerifyLivenessRequest(session_id="s", user_id="u")
    assert parse_request({"action": "compare_faces", "userId": "u", "sourceImageKey": "users/u/x.jpg"}) == \
        CompareFacesRequest(user_id="u", source_image_key="users/u/x.jpg")


@pytest.mark.parametrize("payload", [
    {},
    {"action": "delete_everything", "userId": "u"},
    {"action": 42, "userId": "u"},
])
def test_unknown_action_rejected(payload):
    with pytest.raises(InvalidRequestError, match="Invalid action"):
        parse_request(payload)


def test_missing_fields_are_all_named():
    with pytest.raises(InvalidRequestError) as exc:
        parse_request({"action": "process_document", "userId": "  "})
    assert "documentKey" in exc.value.message
    assert "userId" in exc.value.message


def test_non_mapping_body_rejected():
    with pytest.raises(InvalidRequestError):
        parse_request(["process_document"])


@pytest.mark.parametrize("user_id", ["u1/x", "../u1", "..", "u 1", "u1\\x"])
def test_user_id_outside_safe_charset_rejected(user_id):
    with pytest.raises(InvalidRequestError, match="Invalid userId"):
        parse_request({"action": "start_liveness_session", "userId": user_id})


def test_user_id_allows_common_identifiers():
    assert parse_request({"action": "start_liveness_session", "userId": "jane.doe@example.com"}).user_id == \
        "jane.doe@example.com"


def test_key_scope_does_not_leak_into_nested_user():
    assert is_user_scoped("users/u1/doc.jpg", "u1")
    assert not is_user_scoped("users/u1/x/doc.jpg", "u1/x")
    assert not is_liveness_scoped("liveness/u1/x/reference.jpg", "u1/x")
    assert not is_user_scoped("users/u1/../u2/doc.jpg", "u1")
