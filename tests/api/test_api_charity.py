"""API tests for charity registration and review."""

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework import status

from chainheart.services.charity_lifecycle import APPROVAL_SUBJECT

WALLET = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"


def registration_form(**overrides):
    form = {
        "name": "Clean Water",
        "wallet": WALLET,
        "description": "Wells for rural schools",
        "email": "contact@cleanwater.org",
        "websiteUrl": "https://cleanwater.org",
        "verification": SimpleUploadedFile("registration.pdf", b"%PDF-1.4 doc", content_type="application/pdf"),
        "logo": SimpleUploadedFile("logo.png", b"\x89PNG logo", content_type="image/png"),
    }
    form.update(overrides)
    return {key: value for key, value in form.items() if value is not None}


@pytest.fixture
def submitted(client):
    response = client.post("/api/charity/register", registration_form(), format="multipart")
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def test_register_charity(submitted, storage):
    assert submitted["name"] == "Clean Water"
    assert submitted["wallet"] == WALLET
    assert submitted["status"] == "PENDING"
    assert submitted["logoUrl"] == "/uploads/file-2-logo.png"
    assert submitted["verificationDocumentUrl"] == "/uploads/file-1-registration.pdf"
    assert "requestedTimeStamp" in submitted
    assert storage.files["file-2-logo.png"] == b"\x89PNG logo"


def test_register_requires_verification(client, storage):
    response = client.post("/api/charity/register", registration_form(verification=None), format="multipart")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "validation_error"
    assert storage.files == {}


def test_register_rejects_bad_email(client):
    response = client.post("/api/charity/register", registration_form(email="nope"), format="multipart")

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_list_and_get_requests(client, submitted):
    listed = client.get("/api/charityRequests")
    pending = client.get("/api/charityRequests", {"status": "PENDING"})
    approved = client.get("/api/charityRequests", {"status": "APPROVED"})
    one = client.get(f"/api/charityRequests/{submitted['id']}")
    missing = client.get("/api/charityRequests/999")

    assert [r["id"] for r in listed.json()] == [submitted["id"]]
    assert [r["id"] for r in pending.json()] == [submitted["id"]]
    assert approved.json() == []
    assert one.json() == submitted
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_approve_and_conflict(client, submitted, notifier):
    approved = client.post(f"/api/charityRequests/{submitted['id']}/approve")
    again = client.post(f"/api/charityRequests/{submitted['id']}/approve")
    rejected = client.post(f"/api/charityRequests/{submitted['id']}/reject")
    missing = client.post("/api/charityRequests/999/approve")

    assert approved.status_code == status.HTTP_200_OK
    assert approved.json()["status"] == "APPROVED"
    assert again.status_code == status.HTTP_409_CONFLICT
    assert rejected.status_code == status.HTTP_409_CONFLICT
    assert missing.status_code == status.HTTP_404_NOT_FOUND
    assert [(to, subject) for to, subject, _ in notifier.sent] == [("contact@cleanwater.org", APPROVAL_SUBJECT)]


def test_reject(client, submitted, notifier):
    response = client.post(f"/api/charityRequests/{submitted['id']}/reject")

    assert response.json()["status"] == "REJECTED"
    assert notifier.sent == []


def test_admin_status_override(client, submitted):
    client.post(f"/api/charityRequests/{submitted['id']}/reject")

    response = client.patch(f"/api/charityRequests/adminapprove/{submitted['id']}?status=APPROVED")
    missing_status = client.patch(f"/api/charityRequests/adminapprove/{submitted['id']}")
    missing_request = client.patch("/api/charityRequests/adminapprove/999?status=APPROVED")

    assert response.json()["status"] == "APPROVED"
    assert missing_status.status_code == status.HTTP_400_BAD_REQUEST
    assert missing_request.status_code == status.HTTP_404_NOT_FOUND


def test_update_details(client, submitted, storage):
    response = client.put(
        f"/api/charityRequests/{submitted['id']}",
        {"description": "Wells and pumps"},
        format="multipart",
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["description"] == "Wells and pumps"
    assert data["name"] == "Clean Water"
    assert data["logoUrl"] == submitted["logoUrl"]
    assert storage.deleted == []


def test_update_logo_releases_previous(client, submitted, storage):
    new_logo = SimpleUploadedFile("new.png", b"\x89PNG new", content_type="image/png")

    response = client.put(f"/api/charityRequests/{submitted['id']}", {"logo": new_logo}, format="multipart")

    assert response.json()["logoUrl"] == "/uploads/file-3-new.png"
    assert storage.deleted == ["file-2-logo.png"]


def test_logo_changed_without_file_is_rejected(client, submitted, storage):
    response = client.put(
        f"/api/charityRequests/{submitted['id']}",
        {"logoChanged": "true", "description": "changed"},
        format="multipart",
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert client.get(f"/api/charityRequests/{submitted['id']}").json()["description"] == submitted["description"]
    assert storage.deleted == []


def test_delete_request(client, submitted):
    deleted = client.delete(f"/api/charityRequests/delete/{submitted['id']}")
    again = client.delete(f"/api/charityRequests/delete/{submitted['id']}")

    assert deleted.status_code == status.HTTP_204_NO_CONTENT
    assert again.status_code == status.HTTP_404_NOT_FOUND
    assert client.get(f"/api/charityRequests/{submitted['id']}").status_code == status.HTTP_404_NOT_FOUND
