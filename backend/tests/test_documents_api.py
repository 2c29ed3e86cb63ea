"""
Document Endpoint Tests
"""
import pytest

DOCS = "/api/v1/documents"


async def upload(client, headers, name="Report", file_name="report.pdf", target="fr", data=b"%PDF-1.4 fake"):
    return await client.post(
        f"{DOCS}/upload",
        headers=headers,
        data={"documentName": name, "targetLanguage": target},
        files={"file": (file_name, data, "application/pdf")},
    )


async def translate_text(client, headers, name="Greeting", text="Hello\nthere", target="es"):
    return await client.post(
        f"{DOCS}/translate-text",
        headers=headers,
        json={"documentName": name, "targetLanguage": target, "text": text},
    )


class TestUpload:
    async def test_upload_creates_document(self, client, auth_headers, test_user, blob_store):
        response = await upload(client, auth_headers)
        assert response.status_code == 201

        body = response.json()
        assert "message" in body
        doc = body["document"]
        assert doc["userId"] == test_user.id
        assert doc["documentName"] == "Report"
        assert doc["originalFileName"] == "report.pdf"
        assert doc["fileType"] == "pdf"
        assert doc["originalText"] == "Hello world"
        assert doc["translatedText"] == "[fr] Hello world"
        assert doc["extractionOk"] is True
        assert doc["translationOk"] is True
        assert blob_store.objects == {}

    async def test_requires_auth(self, client):
        response = await client.post(f"{DOCS}/upload", data={"documentName": "Report"})
        assert response.status_code == 401

    async def test_missing_file(self, client, auth_headers):
        response = await client.post(
            f"{DOCS}/upload",
            headers=auth_headers,
            data={"documentName": "Report", "targetLanguage": "fr"},
        )
        assert response.status_code == 400

    async def test_missing_name(self, client, auth_headers):
        response = await client.post(
            f"{DOCS}/upload",
            headers=auth_headers,
            data={"targetLanguage": "fr"},
            files={"file": ("report.pdf", b"%PDF", "application/pdf")},
        )
        assert response.status_code == 400
        assert response.json() == {"message": "documentName is required"}

    async def test_invalid_target_language(self, client, auth_headers, blob_store):
        response = await upload(client, auth_headers, target="Spanish")
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid targetLanguage format"}
        assert blob_store.uploaded == []

    async def test_duplicate_name(self, client, auth_headers):
        assert (await upload(client, auth_headers, name="Report")).status_code == 201
        response = await upload(client, auth_headers, name="REPORT")
        assert response.status_code == 409

    async def test_blob_store_down(self, client, auth_headers, blob_store):
        blob_store.fail_upload = True
        response = await upload(client, auth_headers)
        assert response.status_code == 500
        assert response.json() == {"message": "File upload failed"}

    async def test_translation_failure_is_not_an_error(self, client, auth_headers, translator):
        translator.fail = True
        response = await upload(client, auth_headers)
        assert response.status_code == 201
        doc = response.json()["document"]
        assert doc["translationOk"] is False
        assert doc["translatedText"] == ""

    async def test_file_too_large(self, client, auth_headers, monkeypatch):
        from core.config import settings

        monkeypatch.setattr(settings, "MAX_UPLOAD_MB", 1)
        response = await upload(client, auth_headers, data=b"x" * (1024 * 1024 + 1))
        assert response.status_code == 400


class TestTranslateText:
    async def test_creates_document(self, client, auth_headers):
        response = await translate_text(client, auth_headers)
        assert response.status_code == 201
        doc = response.json()["document"]
        assert doc["fileType"] == "other"
        assert doc["originalText"] == "Hello there"
        assert doc["translatedText"] == "[es] Hello there"

    async def test_empty_name_rejected(self, client, auth_headers):
        response = await translate_text(client, auth_headers, name="")
        assert response.status_code == 400

    async def test_invalid_target_language(self, client, auth_headers):
        response = await translate_text(client, auth_headers, target="spanish")
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid targetLanguage format"}
        listing = await client.get(f"{DOCS}/user", headers=auth_headers)
        assert listing.json()["documents"] == []
        assert response.json()["message"] == "Validation failed"


class TestListAndGet:
    async def test_paginated_listing(self, client, auth_headers):
        for i in range(3):
            await translate_text(client, auth_headers, name=f"Doc {i}")

        response = await client.get(f"{DOCS}/user", params={"page": 1, "limit": 2}, headers=auth_headers)
        assert response.status_code == 200

        data = response.json()["data"]
        assert [d["documentName"] for d in data["documents"]] == ["Doc 2", "Doc 1"]
        assert data["pagination"] == {"page": 1, "limit": 2, "totalPages": 2, "totalDocuments": 3}

    async def test_empty_listing(self, client, auth_headers):
        response = await client.get(f"{DOCS}/user", headers=auth_headers)
        data = response.json()["data"]
        assert data["documents"] == []
        assert data["pagination"]["totalPages"] == 0

    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}])
    async def test_bad_paging(self, client, auth_headers, params):
        response = await client.get(f"{DOCS}/user", params=params, headers=auth_headers)
        assert response.status_code == 400

    async def test_listing_only_shows_own_documents(self, client, auth_headers, make_user, headers_for):
        other = await make_user(email="bo@example.com")
        await translate_text(client, headers_for(other), name="Theirs")
        await translate_text(client, auth_headers, name="Mine")

        response = await client.get(f"{DOCS}/user", headers=auth_headers)
        assert [d["documentName"] for d in response.json()["data"]["documents"]] == ["Mine"]

    async def test_get_document(self, client, auth_headers):
        created = (await translate_text(client, auth_headers)).json()["document"]
        response = await client.get(f"{DOCS}/{created['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["documentName"] == "Greeting"

    async def test_get_missing(self, client, auth_headers):
        response = await client.get(f"{DOCS}/12345", headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"message": "Document not found"}

    async def test_get_foreign(self, client, auth_headers, make_user, headers_for):
        other = await make_user(email="bo@example.com")
        created = (await translate_text(client, headers_for(other))).json()["document"]
        response = await client.get(f"{DOCS}/{created['id']}", headers=auth_headers)
        assert response.status_code == 403


class TestUpdate:
    async def test_rename(self, client, auth_headers):
        created = (await translate_text(client, auth_headers)).json()["document"]
        response = await client.patch(
            f"{DOCS}/{created['id']}",
            headers=auth_headers,
            json={"documentName": "Salutation", "translatedText": "Hola"},
        )
        assert response.status_code == 200
        doc = response.json()["document"]
        assert doc["documentName"] == "Salutation"
        assert doc["translatedText"] == "Hola"

    async def test_empty_patch(self, client, auth_headers):
        created = (await translate_text(client, auth_headers)).json()["document"]
        response = await client.patch(f"{DOCS}/{created['id']}", headers=auth_headers, json={})
        assert response.status_code == 400

    async def test_rename_conflict(self, client, auth_headers):
        await translate_text(client, auth_headers, name="First")
        second = (await translate_text(client, auth_headers, name="Second")).json()["document"]
        response = await client.patch(
            f"{DOCS}/{second['id']}", headers=auth_headers, json={"documentName": "first"}
        )
        assert response.status_code == 409

    async def test_foreign_patch(self, client, auth_headers, make_user, headers_for):
        other = await make_user(email="bo@example.com")
        created = (await translate_text(client, headers_for(other))).json()["document"]
        response = await client.patch(
            f"{DOCS}/{created['id']}", headers=auth_headers, json={"documentName": "Stolen"}
        )
        assert response.status_code == 403


class TestDelete:
    async def test_delete_one(self, client, auth_headers):
        created = (await translate_text(client, auth_headers)).json()["document"]
        response = await client.delete(f"{DOCS}/{created['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert (await client.get(f"{DOCS}/{created['id']}", headers=auth_headers)).status_code == 404

        me = (await client.get("/api/v1/users/me", headers=auth_headers)).json()["user"]
        assert me["documents"] == []

    async def test_delete_all(self, client, auth_headers):
        for name in ("A", "B"):
            await translate_text(client, auth_headers, name=name)

        response = await client.delete(f"{DOCS}/all", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["deletedCount"] == 2

        me = (await client.get("/api/v1/users/me", headers=auth_headers)).json()["user"]
        assert me["documents"] == []

    async def test_delete_all_when_empty(self, client, auth_headers):
        response = await client.delete(f"{DOCS}/all", headers=auth_headers)
        assert response.status_code == 500
        assert response.json() == {"message": "No documents were deleted"}


class TestTranslateEndpoint:
    async def test_translate(self, client, auth_headers):
        response = await client.post(
            "/api/v1/translate/", headers=auth_headers, json={"text": "Hello", "targetLang": "it"}
        )
        assert response.status_code == 200
        assert response.json() == {"translated": "[it] Hello"}

    async def test_missing_fields(self, client, auth_headers):
        response = await client.post("/api/v1/translate/", headers=auth_headers, json={"text": "Hello"})
        assert response.status_code == 400

    async def test_invalid_target(self, client, auth_headers):
        response = await client.post(
            "/api/v1/translate/", headers=auth_headers, json={"text": "Hello", "targetLang": "Italian"}
        )
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid targetLang format"}

    async def test_provider_failure(self, client, auth_headers, translator):
        translator.fail = True
        response = await client.post(
            "/api/v1/translate/", headers=auth_headers, json={"text": "Hello", "targetLang": "it"}
        )
        assert response.status_code == 500
        assert response.json() == {"message": "Translation failed"}

    async def test_requires_auth(self, client):
        response = await client.post("/api/v1/translate/", json={"text": "Hello", "targetLang": "it"})
        assert response.status_code == 401
