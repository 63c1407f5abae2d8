import json

import httpx
import pytest

from helpers import AUTH, TOKEN, error_codes

LOGIN = """
mutation Login($input: LoginInput!) {
  login(input: $input) { accessToken refreshToken user { id email role createdAt } }
}
"""

CREDENTIALS = {"input": {"email": "ada@example.com", "password": "secret"}}

@pytest.mark.asyncio
async def test_login_returns_tokens_and_user(execute, router):
    route = router.post(host=AUTH, path="/api/auth/login").mock(return_value=httpx.Response(200, json={
        "success": True,
        "data": {
            "user": {"_id": "u1", "email": "ada@example.com", "role": "seller", "createdAt": "2024-02-03T04:05:06Z"},
            "accessToken": "a-token",
            "refreshToken": "r-token",
        },
    }))

    result = await execute(LOGIN, CREDENTIALS)

    assert result.errors is None
    assert result.data["login"] == {
        "accessToken": "a-token",
        "refreshToken": "r-token",
        "user": {"id": "u1", "email": "ada@example.com", "role": "seller", "createdAt": "2024-02-03T04:05:06.000Z"},
    }
    assert json.loads(route.calls.last.request.content) == {"email": "ada@example.com", "password": "secret"}
    assert "Authorization" not in route.calls.last.request.headers

@pytest.mark.asyncio
async def test_login_rejection_keeps_downstream_message(execute, router):
    router.post(host=AUTH, path="/api/auth/login").mock(
        return_value=httpx.Response(400, json={"success": False, "message": "Invalid email or password"}))

    result = await execute(LOGIN, CREDENTIALS)

    assert result.data is None
    assert error_codes(result) == ["UPSTREAM_VALIDATION"]
    assert result.errors[0].message == "Invalid email or password"

@pytest.mark.asyncio
async def test_login_outage_is_not_silent(execute, router):
    router.post(host=AUTH, path="/api/auth/login").mock(return_value=httpx.Response(503))

    result = await execute(LOGIN, CREDENTIALS)

    assert result.data is None
    assert error_codes(result) == ["UPSTREAM_UNAVAILABLE"]

@pytest.mark.asyncio
async def test_login_response_without_tokens_is_an_error(execute, router):
    router.post(host=AUTH, path="/api/auth/login").mock(return_value=httpx.Response(200, json={
        "success": True, "data": {"user": {"_id": "u1", "email": "ada@example.com"}},
    }))

    result = await execute(LOGIN, CREDENTIALS)

    assert result.data is None
    assert error_codes(result) == ["UPSTREAM_UNAVAILABLE"]

@pytest.mark.asyncio
async def test_me_without_token_never_calls_auth(execute, router):
    route = router.get(host=AUTH, path="/api/auth/me").mock(return_value=httpx.Response(200, json={}))

    result = await execute("{ me { id } }")

    assert error_codes(result) == ["UNAUTHENTICATED"]
    assert route.call_count == 0

@pytest.mark.asyncio
async def test_expired_token_maps_to_unauthenticated(execute, router):
    router.get(host=AUTH, path="/api/auth/me").mock(
        return_value=httpx.Response(401, json={"success": False, "message": "Token expired"}))

    result = await execute("{ me { id } }", token="stale")

    assert error_codes(result) == ["UNAUTHENTICATED"]
    assert result.errors[0].message == "Token expired"

@pytest.mark.asyncio
async def test_forgot_password_failure_is_an_envelope(execute, router):
    router.post(host=AUTH, path="/api/auth/forgot-password").mock(
        return_value=httpx.Response(404, json={"success": False, "message": "No account with that email"}))

    result = await execute('mutation { forgotPassword(email: "x@example.com", domain: "shop") { success message } }')

    assert result.errors is None
    assert result.data["forgotPassword"] == {"success": False, "message": "No account with that email"}

@pytest.mark.asyncio
async def test_users_pagination_carries_role_counts(execute, router):
    route = router.get(host=AUTH, path="/api/users").mock(return_value=httpx.Response(200, json={
        "success": True,
        "data": {
            "users": [{"_id": "u1", "email": "a@example.com", "name": "A"}],
            "pagination": {"page": 1, "limit": 20, "total": 1, "pages": 1,
                           "sellerCount": 0, "adminCount": 1, "customerCount": 0},
        },
    }))

    result = await execute('{ users(role: "admin") { users { id role } pagination { total adminCount } } }',
                           token=TOKEN)

    assert result.errors is None
    assert result.data["users"] == {"users": [{"id": "u1", "role": "customer"}],
                                    "pagination": {"total": 1, "adminCount": 1}}
    assert route.calls.last.request.url.params["role"] == "admin"

@pytest.mark.asyncio
async def test_get_user_by_id_degrades_to_null(execute, router):
    router.get(host=AUTH, path="/api/auth/user/u1").mock(return_value=httpx.Response(500))

    result = await execute('{ getUserById(id: "u1") { accessToken } }')

    assert result.errors is None
    assert result.data["getUserById"] is None

@pytest.mark.asyncio
async def test_update_user_role_without_user_is_an_error(execute, router):
    route = router.patch(host=AUTH, path="/api/users/u1/role").mock(
        return_value=httpx.Response(200, json={"success": True, "data": None}))

    result = await execute('mutation { updateUserRole(id: "u1", role: "admin") { id role } }', token=TOKEN)

    assert error_codes(result) == ["UPSTREAM_UNAVAILABLE"]
    assert result.errors[0].extensions["service"] == "auth"
    assert json.loads(route.calls.last.request.content) == {"role": "admin"}

@pytest.mark.asyncio
async def test_update_user_role_returns_the_user(execute, router):
    router.patch(host=AUTH, path="/api/users/u1/role").mock(return_value=httpx.Response(200, json={
        "success": True, "data": {"user": {"_id": "u1", "email": "ada@example.com", "role": "admin"}}}))

    result = await execute('mutation { updateUserRole(id: "u1", role: "admin") { id role } }', token=TOKEN)

    assert result.errors is None
    assert result.data["updateUserRole"] == {"id": "u1", "role": "admin"}
