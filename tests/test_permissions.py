import pytest

from graph_mcp.permissions import CATCH_ALL_PERMISSION, PermissionGate


@pytest.mark.parametrize("endpoint, method, expected", [
    ("/users", "GET", "User.Read.All"),
    ("/users/123/manager", "GET", "User.Read.All"),
    ("/users", "POST", "User.ReadWrite.All"),
    ("/users/123", "PATCH", "User.ReadWrite.All"),
    ("/groups", "GET", "Group.Read.All"),
    ("/groups", "POST", "Group.ReadWrite.All"),
    ("/groups/1", "PUT", "Group.ReadWrite.All"),
    ("/sites/root", "GET", CATCH_ALL_PERMISSION),
    ("/me", "GET", CATCH_ALL_PERMISSION),
    ("users", "get", "User.Read.All"),
])
def test_permission_for(endpoint, method, expected):
    assert PermissionGate().permission_for(endpoint, method) == expected


def test_default_grants_allow_reads():
    gate = PermissionGate()
    assert gate.check("/users", "GET") is None
    assert gate.check("/groups", "GET") is None


def test_default_grants_deny_writes_and_unknown():
    gate = PermissionGate()
    denied = gate.check("/groups", "POST")
    assert denied.status_code == 403
    assert denied.message == "Missing required permission: Group.ReadWrite.All"
    assert gate.check("/sites", "GET").status_code == 403


def test_from_names():
    gate = PermissionGate.from_names(["User.ReadWrite.All ", "", "Directory.ReadWrite.All"])
    assert gate.check("/users", "POST") is None
    assert gate.check("/applications", "GET") is None
    assert gate.check("/users", "GET") is not None
