import logging

from hubspot_mcp.core.errors import ErrorCode

NOTE = {
    "id": "301",
    "properties": {"hs_note_body": "Called about renewal", "hs_timestamp": "1735689600000"},
    "createdAt": "2025-01-01T00:00:00Z",
}


async def test_create_contact_note_associates_contact(registry, hubspot):
    hubspot.add("POST", "/crm/v3/objects/notes", NOTE, status=201)

    result = await registry.dispatch(
        "create_contact_note",
        {"contact_id": "101", "content": "Called about renewal", "timestamp": 1735689600000},
    )

    assert result.ok
    assert result.data["note"]["id"] == "301"
    assert result.data["note"]["content"] == "Called about renewal"
    body = hubspot.last_json("POST", "/crm/v3/objects/notes")
    assert body["properties"] == {
        "hs_note_body": "Called about renewal",
        "hs_timestamp": "1735689600000",
    }
    assert body["associations"] == [
        {
            "to": {"id": "101"},
            "types": [{"associationCategory": "HUBSPOT_DEFINED", "associationTypeId": 202}],
        }
    ]


async def test_update_note_without_fields(registry, hubspot):
    result = await registry.dispatch("update_note", {"note_id": "301"})

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert hubspot.requests == []


async def test_list_contact_notes_filters_by_association(registry, hubspot):
    hubspot.add("POST", "/crm/v3/objects/notes/search", {"results": [NOTE], "total": 1})

    result = await registry.dispatch("list_contact_notes", {"contact_id": "101"})

    assert result.ok
    body = hubspot.last_json("POST", "/crm/v3/objects/notes/search")
    assert body["filterGroups"] == [
        {"filters": [{"propertyName": "associations.contact", "operator": "EQ", "value": "101"}]}
    ]
    assert body["sorts"][0] == {"propertyName": "hs_timestamp", "direction": "DESCENDING"}


async def test_association_reference_for_known_pair(registry):
    result = await registry.dispatch(
        "get_association_type_reference",
        {"from_object_type": "contacts", "to_object_type": "deals"},
    )

    assert result.ok
    assert result.data["associationTypes"] == {"default": 3}
    assert result.data["fromObjectType"] == "contacts"


async def test_association_reference_for_unknown_pair(registry):
    result = await registry.dispatch(
        "get_association_type_reference",
        {"from_object_type": "products", "to_object_type": "owners"},
    )

    assert result.ok
    assert result.data["associationTypes"] == {}
    assert "No association types found" in result.data["message"]


async def test_create_association_discovers_type(registry, hubspot):
    hubspot.add("PUT", "/crm/v4/objects/contacts/101/associations/companies/7", {"fromObjectId": 101})

    result = await registry.dispatch(
        "create_association",
        {
            "from_object_type": "contacts",
            "from_object_id": "101",
            "to_object_type": "companies",
            "to_object_id": "7",
        },
    )

    assert result.ok
    assert hubspot.last_json("PUT") == [
        {"associationCategory": "HUBSPOT_DEFINED", "associationTypeId": 1}
    ]


async def test_search_owners_matches_email_fragment(registry, hubspot):
    hubspot.add(
        "GET",
        "/crm/v3/owners",
        {
            "results": [
                {"id": "1", "email": "Ada@Example.com", "firstName": "Ada", "lastName": "Lovelace"},
                {"id": "2", "email": "grace@navy.mil", "firstName": "Grace"},
            ]
        },
    )

    result = await registry.dispatch("search_owners", {"email": "example.com"})

    assert result.data["count"] == 1
    assert result.data["owners"][0]["fullName"] == "Ada Lovelace"


async def test_create_email_sends_business_unit(registry, hubspot):
    hubspot.add("POST", "/marketing/v3/emails/", {"id": "e1", "name": "Spring sale", "state": "DRAFT"})

    result = await registry.dispatch(
        "create_email",
        {"name": "Spring sale", "template_id": "tpl-9", "subject": "Save 20%"},
    )

    assert result.ok
    assert result.data["email"]["id"] == "e1"
    assert hubspot.last_json("POST", "/marketing/v3/emails/") == {
        "businessUnitId": "0",
        "name": "Spring sale",
        "subject": "Save 20%",
        "templateId": "tpl-9",
    }


async def test_create_broadcast_defaults_to_draft(registry, hubspot):
    hubspot.add("POST", "/broadcast/v1/broadcasts", {"broadcastGuid": "b1", "status": "DRAFT"})

    result = await registry.dispatch(
        "create_broadcast_message", {"content": "Launch day", "channel_keys": ["ch-1"]}
    )

    assert result.ok
    assert hubspot.last_json("POST", "/broadcast/v1/broadcasts") == {
        "content": {"body": "Launch day"},
        "channelKeys": ["ch-1"],
        "status": "DRAFT",
    }


async def test_update_broadcast_without_fields(registry, hubspot):
    result = await registry.dispatch("update_broadcast_message", {"broadcast_guid": "b1"})

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert hubspot.requests == []


async def test_create_blog_post_is_always_a_draft(registry, hubspot):
    hubspot.add(
        "POST",
        "/cms/v3/blogs/posts",
        {"id": "p1", "name": "Hello", "state": "DRAFT", "contentGroupId": "g1"},
    )

    result = await registry.dispatch(
        "create_blog_post", {"name": "Hello", "content_group_id": "g1"}
    )

    assert result.ok
    assert hubspot.last_json("POST", "/cms/v3/blogs/posts")["state"] == "DRAFT"
    assert result.data["blogPost"]["url"].endswith("/g1/blog-posts/p1")


async def test_schedule_blog_post_rejects_bad_dates(registry, hubspot):
    result = await registry.dispatch(
        "schedule_blog_post", {"post_id": "p1", "publish_date": "next tuesday"}
    )

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert hubspot.requests == []


async def test_current_owner_never_puts_the_token_in_logs(registry, hubspot, caplog):
    hubspot.add("GET", "/oauth/v1/access-tokens/me", {"message": "not found"}, status=404)
    hubspot.add(
        "GET",
        "/integrations/v1/me",
        {"portalId": 42, "user": "ada@example.com", "hub_domain": "example.com"},
    )

    with caplog.at_level(logging.DEBUG):
        result = await registry.dispatch("get_current_owner", {})

    assert result.data["user"]["hubId"] == 42
    assert [request.url.path for request in hubspot.requests] == [
        "/oauth/v1/access-tokens/me",
        "/integrations/v1/me",
    ]
    assert all("test-token" not in request.url.path for request in hubspot.requests)
    assert all("test-token" not in record.getMessage() for record in caplog.records)
