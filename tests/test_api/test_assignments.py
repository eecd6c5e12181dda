"""Tests for IP assignment API endpoints."""

from typing import Dict

import pytest
from httpx import AsyncClient

from netpool.models import IpAssignment, IpPool

POOLS_URL = "/api/v1/pools"
ASSIGNMENTS_URL = "/api/v1/ip-assignments"


def pool_assignments_url(pool_id: int) -> str:
    return f"{POOLS_URL}/{pool_id}/assignments"


async def assign(
    client: AsyncClient, headers: Dict[str, str], pool_id: int, **payload
) -> dict:
    response = await client.post(
        pool_assignments_url(pool_id), headers=headers, json=payload
    )
    assert response.status_code == 201, response.text
    return response.json()["assignment"]


@pytest.mark.asyncio
async def test_lan_a_lifecycle(client: AsyncClient, auth_headers) -> None:
    """Create a pool, assign an IP, and walk through the guard rails."""
    response = await client.post(
        POOLS_URL,
        headers=auth_headers,
        json={
            "name": "LAN-A",
            "subnet": "10.0.0.0/24",
            "mask": "255.255.255.0",
            "gateway": "10.0.0.1",
        },
    )
    assert response.status_code == 201
    pool_id = response.json()["pool"]["id"]

    response = await client.post(
        pool_assignments_url(pool_id),
        headers=auth_headers,
        json={"ip": "10.0.0.5", "customer_id": "C-100", "assignment_type": "active"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "IP assigned successfully"
    assignment = data["assignment"]
    assert assignment["status"] == "available"
    assert assignment["last_seen"] is not None
    assert assignment["pool_id"] == pool_id

    # Same IP again
    response = await client.post(
        pool_assignments_url(pool_id),
        headers=auth_headers,
        json={"ip": "10.0.0.5"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "This IP is already assigned in this pool"

    # Pool still holds an assignment
    response = await client.delete(f"{POOLS_URL}/{pool_id}", headers=auth_headers)
    assert response.status_code == 400

    response = await client.delete(
        f"{pool_assignments_url(pool_id)}/{assignment['id']}", headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json() == {"message": "IP assignment removed successfully"}

    response = await client.delete(f"{POOLS_URL}/{pool_id}", headers=auth_headers)
    assert response.status_code == 200


class TestAddAssignment:
    """Tests for POST /pools/{pool_id}/assignments."""

    @pytest.mark.asyncio
    async def test_default_status_and_no_last_seen(
        self, client: AsyncClient, auth_headers, test_pool: IpPool
    ) -> None:
        """Test a non-active assignment gets the default status and no last_seen."""
        assignment = await assign(
            client,
            auth_headers,
            test_pool.id,
            ip="10.0.0.20",
            customer_name="Jane Doe",
            assignment_type="static",
            mac_address="aa:bb:cc:dd:ee:ff",
        )
        assert assignment["status"] == "available"
        assert assignment["last_seen"] is None
        assert assignment["customer_name"] == "Jane Doe"
        assert assignment["mac_address"] == "aa:bb:cc:dd:ee:ff"

    @pytest.mark.asyncio
    async def test_empty_status_defaults(
        self, client: AsyncClient, auth_headers, test_pool: IpPool
    ) -> None:
        assignment = await assign(
            client, auth_headers, test_pool.id, ip="10.0.0.21", status=""
        )
        assert assignment["status"] == "available"

    @pytest.mark.asyncio
    async def test_explicit_status_kept_verbatim(
        self, client: AsyncClient, auth_headers, test_pool: IpPool
    ) -> None:
        assignment = await assign(
            client, auth_headers, test_pool.id, ip="10.0.0.22", status="quarantined"
        )
        assert assignment["status"] == "quarantined"

    @pytest.mark.asyncio
    async def test_missing_ip(
        self, client: AsyncClient, auth_headers, test_pool: IpPool
    ) -> None:
        response = await client.post(
            pool_assignments_url(test_pool.id),
            headers=auth_headers,
            json={"customer_id": "C-1"},
        )
        assert response.status_code == 400
        assert "ip" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_empty_ip(
        self, client: AsyncClient, auth_headers, test_pool: IpPool
    ) -> None:
        response = await client.post(
            pool_assignments_url(test_pool.id), headers=auth_headers, json={"ip": ""}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_pool(self, client: AsyncClient, auth_headers) -> None:
        response = await client.post(
            pool_assignments_url(9999), headers=auth_headers, json={"ip": "10.0.0.5"}
        )
        assert response.status_code == 404
        assert response.json()["message"] == "IP pool not found"

    @pytest.mark.asyncio
    async def test_same_ip_in_other_pool(
        self, client: AsyncClient, auth_headers, test_assignment: IpAssignment
    ) -> None:
        """Test uniqueness is per pool, not global."""
        response = await client.post(
            POOLS_URL,
            headers=auth_headers,
            json={
                "name": "LAN-B",
                "subnet": "10.0.0.0/24",
                "mask": "255.255.255.0",
                "gateway": "10.0.0.1",
            },
        )
        other_pool_id = response.json()["pool"]["id"]

        assignment = await assign(client, auth_headers, other_pool_id, ip="10.0.0.5")
        assert assignment["pool_id"] == other_pool_id

    @pytest.mark.asyncio
    async def test_requires_token(
        self, client: AsyncClient, test_pool: IpPool
    ) -> None:
        response = await client.post(
            pool_assignments_url(test_pool.id), json={"ip": "10.0.0.30"}
        )
        assert response.status_code == 401


class TestUpdateAssignment:
    """Tests for PUT /pools/{pool_id}/assignments/{assignment_id}."""

    @pytest.mark.asyncio
    async def test_update_status(
        self, client: AsyncClient, auth_headers, test_assignment: IpAssignment
    ) -> None:
        url = f"{pool_assignments_url(test_assignment.pool_id)}/{test_assignment.id}"

        response = await client.put(
            url, headers=auth_headers, json={"status": "reserved"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "IP assignment updated successfully"
        assert data["assignment"]["status"] == "reserved"
        assert data["assignment"]["customer_id"] == "C-100"

    @pytest.mark.asyncio
    async def test_ip_is_immutable(
        self, client: AsyncClient, auth_headers, test_assignment: IpAssignment
    ) -> None:
        """Test an ip in the payload is ignored."""
        url = f"{pool_assignments_url(test_assignment.pool_id)}/{test_assignment.id}"

        response = await client.put(
            url, headers=auth_headers, json={"ip": "10.0.0.99", "status": "blocked"}
        )
        assert response.status_code == 200
        assert response.json()["assignment"]["ip"] == "10.0.0.5"
        assert response.json()["assignment"]["status"] == "blocked"

    @pytest.mark.asyncio
    async def test_set_and_clear_last_seen(
        self, client: AsyncClient, auth_headers, test_assignment: IpAssignment
    ) -> None:
        url = f"{pool_assignments_url(test_assignment.pool_id)}/{test_assignment.id}"

        response = await client.put(
            url, headers=auth_headers, json={"last_seen": "2024-05-01T12:00:00Z"}
        )
        assert response.status_code == 200
        assert response.json()["assignment"]["last_seen"].startswith(
            "2024-05-01T12:00:00"
        )

        response = await client.put(url, headers=auth_headers, json={"last_seen": None})
        assert response.status_code == 200
        assert response.json()["assignment"]["last_seen"] is None

    @pytest.mark.asyncio
    async def test_bad_last_seen(
        self, client: AsyncClient, auth_headers, test_assignment: IpAssignment
    ) -> None:
        url = f"{pool_assignments_url(test_assignment.pool_id)}/{test_assignment.id}"

        response = await client.put(
            url, headers=auth_headers, json={"last_seen": "yesterday-ish"}
        )
        assert response.status_code == 400
        assert "last_seen" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_null_status_rejected(
        self, client: AsyncClient, auth_headers, test_assignment: IpAssignment
    ) -> None:
        url = f"{pool_assignments_url(test_assignment.pool_id)}/{test_assignment.id}"

        response = await client.put(url, headers=auth_headers, json={"status": None})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_update_is_noop(
        self, client: AsyncClient, auth_headers, test_assignment: IpAssignment
    ) -> None:
        url = f"{pool_assignments_url(test_assignment.pool_id)}/{test_assignment.id}"

        response = await client.put(url, headers=auth_headers, json={})
        assert response.status_code == 200
        assignment = response.json()["assignment"]
        assert assignment["status"] == "active"
        assert assignment["customer_name"] == "Acme Corp"

    @pytest.mark.asyncio
    async def test_wrong_pool_for_assignment(
        self, client: AsyncClient, auth_headers, test_assignment: IpAssignment
    ) -> None:
        """Test an assignment is only reachable through its own pool."""
        assignment_id = test_assignment.id
        response = await client.post(
            POOLS_URL,
            headers=auth_headers,
            json={
                "name": "LAN-B",
                "subnet": "10.1.0.0/24",
                "mask": "255.255.255.0",
                "gateway": "10.1.0.1",
            },
        )
        other_pool_id = response.json()["pool"]["id"]

        response = await client.put(
            f"{pool_assignments_url(other_pool_id)}/{assignment_id}",
            headers=auth_headers,
            json={"status": "reserved"},
        )
        assert response.status_code == 404
        assert response.json()["message"] == "IP assignment not found"


class TestDeleteAssignment:
    """Tests for DELETE /pools/{pool_id}/assignments/{assignment_id}."""

    @pytest.mark.asyncio
    async def test_delete_not_found(
        self, client: AsyncClient, auth_headers, test_pool: IpPool
    ) -> None:
        response = await client.delete(
            f"{pool_assignments_url(test_pool.id)}/9999", headers=auth_headers
        )
        assert response.status_code == 404
        assert response.json()["message"] == "IP assignment not found"

    @pytest.mark.asyncio
    async def test_delete_active_assignment(
        self, client: AsyncClient, auth_headers, test_assignment: IpAssignment
    ) -> None:
        """Test deletion ignores the assignment's status."""
        pool_id = test_assignment.pool_id
        url = f"{pool_assignments_url(pool_id)}/{test_assignment.id}"

        response = await client.delete(url, headers=auth_headers)
        assert response.status_code == 200

        response = await client.get(pool_assignments_url(pool_id), headers=auth_headers)
        assert response.json() == []


class TestListPoolAssignments:
    """Tests for GET /pools/{pool_id}/assignments."""

    @pytest.mark.asyncio
    async def test_string_ordering(
        self, client: AsyncClient, auth_headers, test_pool: IpPool
    ) -> None:
        """Test IPs sort as plain strings, not numerically."""
        pool_id = test_pool.id
        for ip in ("10.0.0.9", "10.0.0.10", "10.0.0.2"):
            await assign(client, auth_headers, pool_id, ip=ip)

        response = await client.get(pool_assignments_url(pool_id), headers=auth_headers)
        assert response.status_code == 200
        assert [a["ip"] for a in response.json()] == [
            "10.0.0.10",
            "10.0.0.2",
            "10.0.0.9",
        ]

    @pytest.mark.asyncio
    async def test_filters(
        self, client: AsyncClient, auth_headers, test_pool: IpPool
    ) -> None:
        pool_id = test_pool.id
        await assign(client, auth_headers, pool_id, ip="10.0.0.2", customer_id="C-1")
        await assign(
            client, auth_headers, pool_id, ip="10.0.0.3", status="active",
            customer_id="C-1",
        )
        await assign(
            client, auth_headers, pool_id, ip="10.0.0.4", status="active",
            customer_id="C-2",
        )

        response = await client.get(
            pool_assignments_url(pool_id),
            headers=auth_headers,
            params={"status": "active"},
        )
        assert [a["ip"] for a in response.json()] == ["10.0.0.3", "10.0.0.4"]

        response = await client.get(
            pool_assignments_url(pool_id),
            headers=auth_headers,
            params={"status": "active", "customer_id": "C-1"},
        )
        assert [a["ip"] for a in response.json()] == ["10.0.0.3"]

    @pytest.mark.asyncio
    async def test_unknown_pool(self, client: AsyncClient, auth_headers) -> None:
        response = await client.get(pool_assignments_url(9999), headers=auth_headers)
        assert response.status_code == 404


class TestListAllAssignments:
    """Tests for GET /ip-assignments."""

    @pytest.mark.asyncio
    async def test_embeds_pool(
        self, client: AsyncClient, auth_headers, test_assignment: IpAssignment
    ) -> None:
        response = await client.get(ASSIGNMENTS_URL, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["ip"] == "10.0.0.5"
        assert data[0]["ip_pool"]["name"] == "LAN-A"
        assert data[0]["ip_pool"]["gateway"] == "10.0.0.1"

    @pytest.mark.asyncio
    async def test_across_pools_with_filters(
        self, client: AsyncClient, auth_headers, test_pool: IpPool
    ) -> None:
        """Test the system-wide listing spans pools and honors filters."""
        lan_a = test_pool.id
        response = await client.post(
            POOLS_URL,
            headers=auth_headers,
            json={
                "name": "LAN-B",
                "subnet": "10.1.0.0/24",
                "mask": "255.255.255.0",
                "gateway": "10.1.0.1",
            },
        )
        lan_b = response.json()["pool"]["id"]

        await assign(client, auth_headers, lan_a, ip="10.0.0.9", status="active")
        await assign(client, auth_headers, lan_a, ip="10.0.0.10", customer_id="C-7")
        await assign(
            client, auth_headers, lan_b, ip="10.1.0.2", status="active",
            customer_id="C-7",
        )

        response = await client.get(ASSIGNMENTS_URL, headers=auth_headers)
        data = response.json()
        assert [a["ip"] for a in data] == ["10.0.0.10", "10.0.0.9", "10.1.0.2"]
        assert [a["ip_pool"]["name"] for a in data] == ["LAN-A", "LAN-A", "LAN-B"]

        response = await client.get(
            ASSIGNMENTS_URL, headers=auth_headers, params={"status": "active"}
        )
        assert [a["ip"] for a in response.json()] == ["10.0.0.9", "10.1.0.2"]

        response = await client.get(
            ASSIGNMENTS_URL, headers=auth_headers, params={"customer_id": "C-7"}
        )
        assert [a["ip"] for a in response.json()] == ["10.0.0.10", "10.1.0.2"]

        response = await client.get(
            ASSIGNMENTS_URL, headers=auth_headers, params={"ip_pool_id": lan_b}
        )
        assert [a["ip"] for a in response.json()] == ["10.1.0.2"]

    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient) -> None:
        response = await client.get(ASSIGNMENTS_URL)
        assert response.status_code == 401
