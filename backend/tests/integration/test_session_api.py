"""Integration tests for the session API

Tests the session lifecycle end to end:
- Creation and invitation emails
- Invitee answers, cancellation when nobody is left
- Invitee list management
- File upload and sending for notarization
- Visibility and date queries
- Session signature approval
"""

from uuid import uuid4

import pytest

from models import NotarizationDocument

PDF = b"%PDF-1.4\nsession\n"


def session_body(**overrides):
    body = {
        "sessionName": "Property transfer",
        "notaryField": {"id": "f1", "name": "Real estate"},
        "notaryService": {"id": "s1", "name": "Sale contract", "price": 500000},
        "startDate": "2024-10-10",
        "startTime": "14:00",
        "endDate": "2024-10-10",
        "endTime": "15:00",
        "users": [{"email": "other@test.com"}],
    }
    body.update(overrides)
    return body


@pytest.fixture
def create_session(client, auth_headers, requester, other_user):
    def _create(user=None, **overrides):
        response = client.post(
            "/v1/session/createSession",
            json=session_body(**overrides),
            headers=auth_headers(user or requester),
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def session_id(create_session):
    return create_session()["id"]


@pytest.fixture
def join(client, auth_headers):
    def _join(user, session_id, action="accept"):
        return client.post(
            f"/v1/session/joinSession/{session_id}",
            json={"action": action},
            headers=auth_headers(user),
        )

    return _join


@pytest.fixture
def upload(client, auth_headers):
    def _upload(user, session_id, filename="deed.pdf"):
        return client.post(
            f"/v1/session/upload-session-document/{session_id}",
            files=[("files", (filename, PDF, "application/pdf"))],
            headers=auth_headers(user),
        )

    return _upload


class TestCreateSession:

    def test_create_emails_invitees(self, client, auth_headers, requester, notifier):
        response = client.post("/v1/session/createSession", json=session_body(), headers=auth_headers(requester))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "draft"
        assert data["createdBy"] == str(requester.id)
        assert data["users"] == [{"email": "other@test.com", "status": "pending", "userId": None, "respondedAt": None}]
        assert data["files"] == []

        [mail] = notifier.sent
        assert mail["recipients"] == ["other@test.com"]
        assert data["id"] in mail["body"]

    def test_end_before_start(self, client, auth_headers, requester):
        response = client.post(
            "/v1/session/createSession",
            json=session_body(endTime="13:00"),
            headers=auth_headers(requester),
        )
        assert response.status_code == 400
        assert response.json()["code"] == "bad_request"

    def test_creator_cannot_invite_self(self, client, auth_headers, requester):
        response = client.post(
            "/v1/session/createSession",
            json=session_body(users=[{"email": requester.email}]),
            headers=auth_headers(requester),
        )
        assert response.status_code == 400

    def test_notary_cannot_create(self, client, auth_headers, notary_user):
        response = client.post("/v1/session/createSession", json=session_body(), headers=auth_headers(notary_user))
        assert response.status_code == 403

    def test_invitation_failure_keeps_session(self, client, auth_headers, requester, notifier):
        notifier.fail = True
        response = client.post("/v1/session/createSession", json=session_body(), headers=auth_headers(requester))

        assert response.status_code == 500
        assert response.json()["code"] == "partial_failure"

        notifier.fail = False
        [session] = client.get("/v1/session/getSessionsByUserId", headers=auth_headers(requester)).json()
        assert session["id"] in response.json()["message"]


class TestJoinSession:

    def test_accept(self, session_id, join, other_user):
        response = join(other_user, session_id)
        assert response.status_code == 200
        [invitee] = response.json()["users"]
        assert invitee["status"] == "accepted"
        assert invitee["userId"] == str(other_user.id)
        assert invitee["respondedAt"] is not None

    def test_answer_only_once(self, session_id, join, other_user):
        join(other_user, session_id)
        response = join(other_user, session_id, "reject")
        assert response.status_code == 400
        assert "already accepted" in response.json()["message"]

    def test_uninvited_user(self, session_id, join, make_user):
        outsider = make_user("outsider@test.com")
        assert join(outsider, session_id).status_code == 403

    def test_invalid_action(self, session_id, join, other_user):
        assert join(other_user, session_id, "maybe").status_code == 400

    def test_unknown_session(self, join, other_user):
        assert join(other_user, uuid4()).status_code == 404

    def test_last_rejection_cancels(self, session_id, join, other_user):
        response = join(other_user, session_id, "reject")
        assert response.json()["status"] == "cancelled"

    def test_rejection_with_others_left(self, create_session, join, other_user, make_user):
        make_user("third@test.com")
        session = create_session(users=[{"email": "other@test.com"}, {"email": "third@test.com"}])
        response = join(other_user, session["id"], "reject")
        assert response.json()["status"] == "draft"


class TestInviteeList:

    def test_add_user(self, session_id, client, auth_headers, requester, notifier):
        response = client.patch(
            f"/v1/session/addUser/{session_id}",
            json={"emails": ["Third@Test.com"]},
            headers=auth_headers(requester),
        )
        assert response.status_code == 200
        assert [u["email"] for u in response.json()["users"]] == ["other@test.com", "third@test.com"]
        assert notifier.sent[-1]["recipients"] == ["third@test.com"]

    def test_add_existing_invitee(self, session_id, client, auth_headers, requester):
        response = client.patch(
            f"/v1/session/addUser/{session_id}",
            json={"emails": ["other@test.com"]},
            headers=auth_headers(requester),
        )
        assert response.status_code == 400

    def test_only_creator_edits(self, session_id, client, auth_headers, other_user):
        response = client.patch(
            f"/v1/session/addUser/{session_id}",
            json={"emails": ["third@test.com"]},
            headers=auth_headers(other_user),
        )
        assert response.status_code == 403

    def test_admin_can_edit(self, session_id, client, auth_headers, admin_user):
        response = client.patch(
            f"/v1/session/addUser/{session_id}",
            json={"emails": ["third@test.com"]},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 200

    def test_delete_user(self, session_id, client, auth_headers, requester):
        client.patch(
            f"/v1/session/addUser/{session_id}",
            json={"emails": ["third@test.com"]},
            headers=auth_headers(requester),
        )
        response = client.patch(
            f"/v1/session/deleteUser/{session_id}",
            json={"email": "other@test.com"},
            headers=auth_headers(requester),
        )
        assert response.status_code == 200
        assert [u["email"] for u in response.json()["users"]] == ["third@test.com"]

    def test_cannot_delete_last_invitee(self, session_id, client, auth_headers, requester):
        response = client.patch(
            f"/v1/session/deleteUser/{session_id}",
            json={"email": "other@test.com"},
            headers=auth_headers(requester),
        )
        assert response.status_code == 400
        assert "at least one invitee" in response.json()["message"]

    def test_delete_unknown_invitee(self, session_id, client, auth_headers, requester):
        response = client.patch(
            f"/v1/session/deleteUser/{session_id}",
            json={"email": "nobody@test.com"},
            headers=auth_headers(requester),
        )
        assert response.status_code == 404


class TestUploadAndSend:

    def test_send_without_files(self, session_id, client, auth_headers, requester):
        response = client.post(
            f"/v1/session/send-session-for-notarization/{session_id}",
            headers=auth_headers(requester),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "No documents to send for notarization"

    def test_pending_invitee_cannot_upload(self, session_id, upload, other_user, storage):
        assert upload(other_user, session_id).status_code == 403
        assert storage.objects == {}

    def test_full_flow(self, session_id, join, upload, client, auth_headers, requester, other_user,
                       notifier, db_session):
        join(other_user, session_id)
        response = upload(other_user, session_id)
        assert response.status_code == 201
        assert response.json()["message"] == "Files uploaded successfully"
        [entry] = response.json()["files"]
        assert entry["storageUrl"].startswith(f"https://files.test/sessions/{session_id}/")

        response = client.post(
            f"/v1/session/send-session-for-notarization/{session_id}",
            headers=auth_headers(requester),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Session sent for notarization successfully"
        assert data["status"] == "pending"
        assert data["session"]["status"] == "submitted"
        assert data["session"]["documentId"] == data["documentId"]

        document = db_session.query(NotarizationDocument).one()
        assert str(document.id) == data["documentId"]
        assert str(document.session_id) == session_id
        assert document.requester_info["email"] == requester.email
        assert notifier.sent[-1]["recipients"] == [requester.email]

        status = client.get(f"/v1/notarization/getStatusById/{data['documentId']}").json()
        assert status["status"] == "pending"

    def test_non_creator_cannot_send(self, session_id, join, upload, client, auth_headers, other_user):
        join(other_user, session_id)
        upload(other_user, session_id)
        response = client.post(
            f"/v1/session/send-session-for-notarization/{session_id}",
            headers=auth_headers(other_user),
        )
        assert response.status_code == 403

    def test_submitted_session_is_frozen(self, session_id, upload, client, auth_headers, requester):
        upload(requester, session_id)
        client.post(f"/v1/session/send-session-for-notarization/{session_id}", headers=auth_headers(requester))

        again = client.post(
            f"/v1/session/send-session-for-notarization/{session_id}",
            headers=auth_headers(requester),
        )
        assert again.status_code == 400
        assert upload(requester, session_id).status_code == 400

    def test_upload_rejects_bad_type(self, session_id, upload, requester):
        response = upload(requester, session_id, filename="notes.txt")
        assert response.status_code == 400


class TestSessionQueries:

    def test_by_date(self, session_id, client, auth_headers, requester):
        headers = auth_headers(requester)
        on_day = client.get("/v1/session/getSessionsByDate", params={"date": "2024-10-10"}, headers=headers).json()
        assert [s["id"] for s in on_day] == [session_id]

        other_day = client.get("/v1/session/getSessionsByDate", params={"date": "2024-11-01"}, headers=headers)
        assert other_day.json() == []

    def test_by_date_requires_valid_date(self, client, auth_headers, requester):
        response = client.get(
            "/v1/session/getSessionsByDate",
            params={"date": "10/10/2024"},
            headers=auth_headers(requester),
        )
        assert response.status_code == 400

    def test_by_month(self, session_id, client, auth_headers, notary_user):
        response = client.get(
            "/v1/session/getSessionsByMonth",
            params={"date": "2024-10-01"},
            headers=auth_headers(notary_user),
        )
        assert [s["id"] for s in response.json()] == [session_id]

    def test_invitee_sees_session(self, session_id, client, auth_headers, other_user):
        mine = client.get("/v1/session/getSessionsByUserId", headers=auth_headers(other_user)).json()
        assert [s["id"] for s in mine] == [session_id]

    def test_outsider_sees_nothing(self, session_id, client, auth_headers, make_user):
        outsider = make_user("outsider@test.com")
        headers = auth_headers(outsider)

        assert client.get("/v1/session/getAllSessions", headers=headers).json() == []
        response = client.get(f"/v1/session/getSessionBySessionId/{session_id}", headers=headers)
        assert response.status_code == 403

    def test_privileged_role_sees_session(self, session_id, client, auth_headers, secretary_user):
        response = client.get(
            f"/v1/session/getSessionBySessionId/{session_id}",
            headers=auth_headers(secretary_user),
        )
        assert response.status_code == 200
        assert response.json()["sessionName"] == "Property transfer"

    def test_unknown_session(self, client, auth_headers, admin_user):
        response = client.get(f"/v1/session/getSessionBySessionId/{uuid4()}", headers=auth_headers(admin_user))
        assert response.status_code == 404

    def test_active_sessions_excludes_past(self, session_id, client, auth_headers, requester):
        response = client.get("/v1/session/getActiveSessions", headers=auth_headers(requester))
        assert response.status_code == 200
        assert response.json() == []


class TestSessionSignature:

    def test_both_halves(self, session_id, client, auth_headers, requester, secretary_user):
        by_user = client.post(
            f"/v1/session/approve-signature-by-user/{session_id}",
            data={"amount": "500000"},
            files={"signatureImage": ("signature.png", b"\x89PNG\r\n", "image/png")},
            headers=auth_headers(requester),
        )
        assert by_user.status_code == 201
        assert by_user.json()["signatureImage"].startswith(f"https://files.test/signatures/sessions/{session_id}/")
        assert by_user.json()["fullyApproved"] is False

        by_secretary = client.post(
            f"/v1/session/approve-signature-by-secretary/{session_id}",
            headers=auth_headers(secretary_user),
        )
        assert by_secretary.status_code == 200
        data = by_secretary.json()
        assert data["sessionId"] == session_id
        assert data["documentId"] is None
        assert data["fullyApproved"] is True

    def test_invitee_cannot_approve_user_half(self, session_id, join, client, auth_headers, other_user):
        join(other_user, session_id)
        response = client.post(
            f"/v1/session/approve-signature-by-user/{session_id}",
            data={"amount": "1"},
            headers=auth_headers(other_user),
        )
        assert response.status_code == 403

    def test_cancelled_session_refuses_signature(self, session_id, join, client, auth_headers,
                                                 other_user, secretary_user):
        join(other_user, session_id, "reject")
        response = client.post(
            f"/v1/session/approve-signature-by-secretary/{session_id}",
            headers=auth_headers(secretary_user),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Session is cancelled"

    def test_session_approval_releases_sent_document(self, session_id, join, upload, client, auth_headers,
                                                     requester, other_user, notary_user, secretary_user):
        client.post(
            f"/v1/session/approve-signature-by-user/{session_id}",
            data={"amount": "500000"},
            headers=auth_headers(requester),
        )
        client.post(
            f"/v1/session/approve-signature-by-secretary/{session_id}",
            headers=auth_headers(secretary_user),
        )
        join(other_user, session_id)
        upload(other_user, session_id)
        document_id = client.post(
            f"/v1/session/send-session-for-notarization/{session_id}",
            headers=auth_headers(requester),
        ).json()["documentId"]

        def forward(user, action):
            return client.patch(
                f"/v1/notarization/forwardDocumentStatus/{document_id}",
                json={"action": action},
                headers=auth_headers(user),
            )

        assert forward(notary_user, "accept").status_code == 200
        response = forward(secretary_user, "forward")
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "digitalSignature"

    def test_unapproved_session_blocks_forward(self, session_id, join, upload, client, auth_headers,
                                               requester, other_user, notary_user, secretary_user):
        join(other_user, session_id)
        upload(other_user, session_id)
        document_id = client.post(
            f"/v1/session/send-session-for-notarization/{session_id}",
            headers=auth_headers(requester),
        ).json()["documentId"]

        url = f"/v1/notarization/forwardDocumentStatus/{document_id}"
        client.patch(url, json={"action": "accept"}, headers=auth_headers(notary_user))
        response = client.patch(url, json={"action": "forward"}, headers=auth_headers(secretary_user))
        assert response.status_code == 400
