"""Tests for Inventory API endpoints."""
from decimal import Decimal

from inventory_tracker.dependencies import get_repository
from inventory_tracker.main import app
from inventory_tracker.services.inventory_repository import InventoryRepository

from fakes import FailingStore


def test_list_empty_inventory(client):
    """Test a fresh inventory is empty."""
    response = client.get("/api/v1/inventory/")

    assert response.status_code == 200
    data = response.json()
    assert data["items"] == []
    assert data["total"] == 0


def test_create_item(client):
    """Test adding a new item by name."""
    response = client.post("/api/v1/inventory/items", json={"name": "apple"})

    assert response.status_code == 200
    items = response.json()["items"]
    assert len(items) == 1
    assert items[0]["name"] == "apple"
    assert items[0]["display_name"] == "Apple"
    assert items[0]["quantity"] == 1
    assert Decimal("1.00") <= Decimal(items[0]["price"]) < Decimal("5.00")
    assert "last_updated" in items[0]


def test_create_item_blank_name(client):
    """Test a blank name is rejected."""
    response = client.post("/api/v1/inventory/items", json={"name": "   "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid item name"


def test_add_increments_quantity(client):
    """Test adding an existing item bumps its quantity and keeps its price."""
    first = client.post("/api/v1/inventory/items/apple/add").json()["items"][0]
    second = client.post("/api/v1/inventory/items/apple/add").json()["items"][0]

    assert second["quantity"] == 2
    assert second["price"] == first["price"]
    assert Decimal(second["total_price"]) == (Decimal(first["price"]) * 2).quantize(Decimal("0.01"))


def test_apple_lifecycle(client):
    """Test add, add, remove, remove leaves the inventory empty."""
    client.post("/api/v1/inventory/items/apple/add")
    client.post("/api/v1/inventory/items/apple/add")

    # Back down to one
    data = client.post("/api/v1/inventory/items/apple/remove").json()
    assert data["items"][0]["quantity"] == 1

    # Last unit deletes the item
    data = client.post("/api/v1/inventory/items/apple/remove").json()
    assert data["items"] == []


def test_remove_missing_item(client):
    """Test removing an unknown item is a no-op."""
    client.post("/api/v1/inventory/items/banana/add")

    response = client.post("/api/v1/inventory/items/cherry/remove")

    assert response.status_code == 200
    assert [item["name"] for item in response.json()["items"]] == ["banana"]


def test_items_sorted_by_name(client):
    """Test items come back in ascending name order."""
    client.post("/api/v1/inventory/items/banana/add")
    client.post("/api/v1/inventory/items/apple/add")

    response = client.get("/api/v1/inventory/")

    assert [item["name"] for item in response.json()["items"]] == ["apple", "banana"]


def test_search_inventory(client):
    """Test searching items by name, case-insensitively."""
    for name in ["Green Apple", "banana", "apple pie"]:
        client.post(f"/api/v1/inventory/items/{name}/add")

    response = client.get("/api/v1/inventory/?search=APPLE")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["matched"] == 2
    assert [item["name"] for item in data["items"]] == ["Green Apple", "apple pie"]


def test_mutation_keeps_search(client):
    """Test a mutation returns the view filtered by its search term."""
    client.post("/api/v1/inventory/items/banana/add")

    response = client.post("/api/v1/inventory/items/apple/add?search=ban")

    data = response.json()
    assert data["total"] == 2
    assert [item["name"] for item in data["items"]] == ["banana"]


def test_clear_inventory(client):
    """Test removing all items."""
    client.post("/api/v1/inventory/items/X/add")
    client.post("/api/v1/inventory/items/Y/add")

    response = client.delete("/api/v1/inventory/items")

    assert response.status_code == 200
    assert response.json()["items"] == []
    assert client.get("/api/v1/inventory/").json()["total"] == 0


def test_store_failure_returns_503(client):
    """Test store errors surface as 503 with a user-visible message."""
    store = FailingStore("list_documents", "set_document")
    app.dependency_overrides[get_repository] = lambda: InventoryRepository(store)
    try:
        list_response = client.get("/api/v1/inventory/")
        add_response = client.post("/api/v1/inventory/items/apple/add")
    finally:
        app.dependency_overrides.clear()

    assert list_response.status_code == 503
    assert list_response.json()["detail"] == "Failed to fetch inventory. Please try again."
    assert add_response.status_code == 503
    assert add_response.json()["detail"] == "Failed to add item. Please try again."


def test_name_with_slash_round_trip(client):
    """Test an item whose name contains a slash can be added to and removed."""
    client.post("/api/v1/inventory/items", json={"name": "1/2 gallon milk"})

    data = client.post("/api/v1/inventory/items/1/2 gallon milk/add").json()
    assert [(item["name"], item["quantity"]) for item in data["items"]] == [("1/2 gallon milk", 2)]

    client.post("/api/v1/inventory/items/1/2 gallon milk/remove")
    response = client.post("/api/v1/inventory/items/1/2 gallon milk/remove")

    assert response.status_code == 200
    assert response.json()["items"] == []


def test_refresh_failure_after_write_is_not_a_failed_write(client):
    """Test a committed add is reported as done even when the re-fetch fails."""
    store = FailingStore("list_documents")
    app.dependency_overrides[get_repository] = lambda: InventoryRepository(store)
    try:
        response = client.post("/api/v1/inventory/items/apple/add")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    data = response.json()
    assert data["committed"] is True
    assert data["error"] == "Failed to fetch inventory. Please try again."
    assert data["items"] == []
    assert store._collections["inventory"]["apple"]["quantity"] == 1


def test_successful_mutation_reports_committed(client):
    """Test a normal add is flagged as committed with no error."""
    data = client.post("/api/v1/inventory/items/apple/add").json()

    assert data["committed"] is True
    assert data["error"] is None
