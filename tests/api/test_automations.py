"""Automation endpoint tests against in-memory repositories (no DB)."""

import uuid

import pytest
from httpx import AsyncClient

BASE = "/api/v1/automations"
AGENT_ID = str(uuid.uuid4())


def _payload(**overrides):
    payload = {
        "name": "Welcome new contacts",
        "description": "Tag and assign every web lead",
        "triggerType": "CONTACT_CREATED",
        "triggerConditions": {"source": "WEBSITE"},
        "actions": [
            {"type": "ASSIGN_AGENT", "parameters": {"agentId": AGENT_ID}, "order": 2},
            {"type": "ADD_TAG", "parameters": {"tags": ["web-lead"]}, "order": 1},
        ],
    }
    payload.update(overrides)
    return payload


async def _create(client: AsyncClient, **overrides) -> dict:
    response = await client.post(BASE, json=_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_returns_camel_case_automation(client: AsyncClient) -> None:
    data = await _create(client)
    uuid.UUID(data["id"])
    assert data["triggerType"] == "CONTACT_CREATED"
    assert data["triggerConditions"] == {"source": "WEBSITE"}
    assert data["isActive"] is True
    assert [a["type"] for a in data["actions"]] == ["ADD_TAG", "ASSIGN_AGENT"]
    assert data["actions"][0]["delayMinutes"] == 0
    assert data["executions"] == []
    assert "createdAt" in data and "updatedAt" in data


async def test_create_invalid_definition_lists_every_field(client: AsyncClient) -> None:
    response = await client.post(BASE, json={"triggerType": "CONTACT_CREATED", "actions": []})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    fields = {e["field"] for e in body["details"]["errors"]}
    assert fields == {"name", "triggerConditions", "actions"}


async def test_create_rejects_unknown_action_type(client: AsyncClient) -> None:
    response = await client.post(
        BASE, json=_payload(actions=[{"type": "TELEPORT", "parameters": {}, "order": 1}])
    )
    assert response.status_code == 400
    assert response.json()["details"]["errors"][0]["field"] == "actions.0.type"


async def test_create_rejects_invalid_parameters(client: AsyncClient) -> None:
    response = await client.post(
        BASE,
        json=_payload(
            actions=[{"type": "SEND_EMAIL", "parameters": {"templateId": "welcome"}, "order": 1}]
        ),
    )
    assert response.status_code == 400
    assert [e["field"] for e in response.json()["details"]["errors"]] == [
        "actions.0.parameters.templateId"
    ]


async def test_list_with_filters_and_pagination(client: AsyncClient) -> None:
    await _create(client, name="Active A")
    inactive = await _create(client, name="Inactive", isActive=False)
    await _create(client, name="Birthday", triggerType="BIRTHDAY", triggerConditions={})

    response = await client.get(BASE, params={"isActive": "false"})
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["id"] == inactive["id"]

    response = await client.get(BASE, params={"triggerType": "BIRTHDAY"})
    assert [a["name"] for a in response.json()["items"]] == ["Birthday"]

    response = await client.get(BASE, params={"page": 2, "pageSize": 2})
    data = response.json()
    assert data["total"] == 3
    assert data["page"] == 2
    assert data["pageSize"] == 2
    assert [a["name"] for a in data["items"]] == ["Active A"]


@pytest.mark.parametrize(
    "params",
    [{"pageSize": 101}, {"page": 0}, {"isActive": "maybe"}, {"triggerType": "NOPE"}],
)
async def test_list_rejects_invalid_query(client: AsyncClient, params: dict) -> None:
    response = await client.get(BASE, params=params)
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_get_update_toggle_delete(client: AsyncClient) -> None:
    created = await _create(client)
    automation_url = f"{BASE}/{created['id']}"

    response = await client.get(automation_url)
    assert response.status_code == 200
    assert response.json()["name"] == "Welcome new contacts"

    response = await client.put(automation_url, json={"name": "Renamed", "description": None})
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Renamed"
    assert data["description"] is None
    assert len(data["actions"]) == 2

    response = await client.patch(f"{automation_url}/toggle")
    assert response.status_code == 200
    assert response.json()["isActive"] is False

    response = await client.delete(automation_url)
    assert response.status_code == 204
    response = await client.get(automation_url)
    assert response.status_code == 404
    assert response.json()["error"] == "RESOURCE_NOT_FOUND"


async def test_update_with_invalid_actions(client: AsyncClient) -> None:
    created = await _create(client)
    response = await client.put(f"{BASE}/{created['id']}", json={"actions": []})
    assert response.status_code == 400


async def test_update_rejects_null_for_required_fields(client: AsyncClient) -> None:
    created = await _create(client)
    response = await client.put(f"{BASE}/{created['id']}", json={"name": None, "actions": None})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert {e["field"] for e in body["details"]["errors"]} == {"name", "actions"}

    response = await client.get(f"{BASE}/{created['id']}")
    assert response.json()["name"] == created["name"]
    assert len(response.json()["actions"]) == 2


async def test_create_rejects_string_numbers(client: AsyncClient) -> None:
    payload = _payload()
    payload["actions"][0]["order"] = "1"
    response = await client.post(BASE, json=payload)
    assert response.status_code == 400
    assert response.json()["details"]["errors"][0]["field"] == "actions.0.order"


async def test_unknown_and_malformed_ids(client: AsyncClient) -> None:
    response = await client.get(f"{BASE}/{uuid.uuid4()}")
    assert response.status_code == 404
    response = await client.get(f"{BASE}/not-a-uuid")
    assert response.status_code == 422


async def test_execute_runs_actions(client: AsyncClient, gateway) -> None:
    created = await _create(client)
    response = await client.post(
        f"{BASE}/{created['id']}/execute", json={"triggerData": {"contactId": "c-1"}}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["status"] == "completed"
    assert data["actionsExecuted"] == 2
    assert data["actionsPending"] == 0
    assert gateway.operations() == ["add_tags", "assign_agent"]

    response = await client.get(f"{BASE}/{created['id']}/executions")
    [execution] = response.json()
    assert execution["id"] == data["executionId"]
    assert execution["triggeredBy"] == {"contactId": "c-1"}
    assert [a["status"] for a in execution["actionsExecuted"]] == ["success", "success"]


async def test_execute_failure_is_reported(client: AsyncClient) -> None:
    created = await _create(client)
    response = await client.post(f"{BASE}/{created['id']}/execute", json={"triggerData": {}})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["status"] == "failed"
    assert "Contact ID required" in data["error"]


async def test_execute_inactive_returns_conflict(client: AsyncClient) -> None:
    created = await _create(client, isActive=False)
    response = await client.post(
        f"{BASE}/{created['id']}/execute", json={"triggerData": {"contactId": "c-1"}}
    )
    assert response.status_code == 409
    assert response.json()["error"] == "AUTOMATION_INACTIVE"


async def test_event_starts_matching_automations(client: AsyncClient, gateway) -> None:
    await _create(client)
    await _create(client, name="Referrals", triggerConditions={"source": "REFERRAL"})

    response = await client.post(
        f"{BASE}/events",
        json={
            "triggerType": "CONTACT_CREATED",
            "data": {"contactId": "c-7", "source": "WEBSITE"},
            "idempotencyKey": "contact-c-7",
        },
    )
    assert response.status_code == 202
    data = response.json()
    assert data["matched"] == 1
    assert data["executions"][0]["status"] == "completed"

    again = await client.post(
        f"{BASE}/events",
        json={
            "triggerType": "CONTACT_CREATED",
            "data": {"contactId": "c-7", "source": "WEBSITE"},
            "idempotencyKey": "contact-c-7",
        },
    )
    assert again.json()["executions"][0]["id"] == data["executions"][0]["id"]
    assert len(gateway.calls) == 2


async def test_execution_pause_resume_cancel(client: AsyncClient) -> None:
    created = await _create(
        client,
        actions=[
            {"type": "ADD_TAG", "parameters": {"tags": ["a"]}, "order": 1},
            {"type": "ADD_TAG", "parameters": {"tags": ["b"]}, "order": 2, "delayMinutes": 1440},
        ],
    )
    run = await client.post(
        f"{BASE}/{created['id']}/execute", json={"triggerData": {"contactId": "c-1"}}
    )
    execution_id = run.json()["executionId"]
    assert run.json()["actionsPending"] == 1

    response = await client.get(f"{BASE}/executions/{execution_id}")
    assert response.status_code == 200
    pending = response.json()["actionsExecuted"][1]
    assert pending["status"] == "pending"
    assert pending["dueAt"] is not None

    response = await client.post(f"{BASE}/executions/{execution_id}/pause")
    assert response.json()["status"] == "paused"
    response = await client.post(f"{BASE}/executions/{execution_id}/pause")
    assert response.status_code == 409
    assert response.json()["error"] == "INVALID_EXECUTION_STATE"

    response = await client.post(f"{BASE}/executions/{execution_id}/resume")
    assert response.json()["status"] == "running"

    response = await client.post(f"{BASE}/executions/{execution_id}/cancel")
    data = response.json()
    assert data["status"] == "failed"
    assert data["error"] == "Execution cancelled"

    response = await client.post(f"{BASE}/executions/{uuid.uuid4()}/cancel")
    assert response.status_code == 404


async def test_templates(client: AsyncClient) -> None:
    response = await client.get(f"{BASE}/trigger-templates")
    assert response.status_code == 200
    triggers = response.json()
    assert triggers[0]["type"] == "CONTACT_CREATED"
    assert {"field", "label", "type", "options", "required", "default"} <= set(
        triggers[0]["conditions"][0]
    )

    response = await client.get(f"{BASE}/action-templates")
    assert response.status_code == 200
    assert "SEND_EMAIL" in [a["type"] for a in response.json()]


async def test_stats(client: AsyncClient) -> None:
    created = await _create(client)
    await _create(client, name="Off", isActive=False)
    await client.post(f"{BASE}/{created['id']}/execute", json={"triggerData": {"contactId": "c"}})
    await client.post(f"{BASE}/{created['id']}/execute", json={"triggerData": {}})

    response = await client.get(f"{BASE}/stats")
    assert response.status_code == 200
    data = response.json()
    assert data["totalAutomations"] == 2
    assert data["activeAutomations"] == 1
    assert data["totalExecutions"] == 2
    assert data["recentExecutions"] == 2
    assert data["successRate"] == 50.0
    assert [a["automationName"] for a in data["recentActivity"]] == [
        "Welcome new contacts",
        "Welcome new contacts",
    ]
