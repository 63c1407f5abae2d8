"""Identity operations, all served by the auth service.

Sign-in style mutations (login, register, Google sign-in) are mandatory and
fail loudly. Account-maintenance flows keep the auth service's
``{success, message}`` envelope: a rejected request comes back as
``success: false`` with the service's own message.
"""
from typing import Annotated, Any, Dict, List, Optional

import strawberry
from strawberry.types import Info

from ..documents import UserDocument
from ..errors import BestEffort, ErrorKind, IsAuthenticated, Mandatory, graph_error, message_of, require_entity
from ..normalize import items_of, iso_datetime, payload_data, pick
from .common import to_pagination

@strawberry.type
class User:
    id: strawberry.ID
    email: str
    name: str
    phone: Optional[str]
    role: str
    is_active: bool
    email_verified: bool
    created_at: Optional[str]
    last_login: Optional[str]
    profile_picture: Optional[str]

@strawberry.type
class AuthPayload:
    user: User
    access_token: str
    refresh_token: str

@strawberry.type
class UserAuthPayload:
    user: User
    access_token: str
    refresh_token: str
    token_expiry: float

@strawberry.type
class UserPagination:
    page: int
    limit: int
    total: int
    pages: int
    seller_count: Optional[int] = None
    admin_count: Optional[int] = None
    customer_count: Optional[int] = None

@strawberry.type
class UserConnection:
    users: List[User]
    pagination: UserPagination

@strawberry.type
class VerificationResponse:
    success: bool
    message: str

@strawberry.type
class VerifyEmailResponse:
    success: bool
    message: str
    user: Optional[User] = None

@strawberry.type
class ForgotPasswordResponse:
    success: bool
    message: str
    reset_token: Optional[str] = None
    reset_url: Optional[str] = None

@strawberry.type
class ResetPasswordResponse:
    success: bool
    message: str

@strawberry.type
class ValidateTokenResponse:
    success: bool
    message: str
    email: Optional[str] = None

@strawberry.type
class ChangePasswordResponse:
    success: bool
    message: Optional[str] = None

@strawberry.type
class UpdateProfileResponse:
    success: bool
    message: Optional[str] = None
    user: Optional[User] = None

@strawberry.input
class LoginInput:
    email: str
    password: str

@strawberry.input
class RegisterInput:
    email: str
    password: str
    name: str
    role: Optional[str] = None

@strawberry.input
class UpdateProfileInput:
    name: Optional[str] = None
    phone: Optional[str] = None

@strawberry.input
class ChangePasswordInput:
    current_password: str
    new_password: str

@strawberry.input
class GoogleAuthInput:
    id_token: str

def to_user(raw: Dict[str, Any]) -> User:
    doc = UserDocument.model_validate(raw)
    return User(
        id=doc.id or "",
        email=doc.email or "",
        name=doc.name or "",
        phone=doc.phone,
        role=doc.role or "customer",
        is_active=doc.isActive if doc.isActive is not None else True,
        email_verified=bool(doc.emailVerified),
        created_at=iso_datetime(doc.createdAt),
        last_login=iso_datetime(doc.lastLogin),
        profile_picture=doc.profilePicture,
    )

def _user_of(body: Any) -> Optional[Dict[str, Any]]:
    user = payload_data(body).get("user")
    if not isinstance(user, dict) and isinstance(body, dict):
        user = body.get("user")
    return user if isinstance(user, dict) else None

def _envelope(body: Any) -> Dict[str, Any]:
    return body if isinstance(body, dict) else {}

def to_auth_payload(body: Any, failure: str) -> AuthPayload:
    """Validate a sign-in response; a rejected or incomplete response is an error."""
    body = _envelope(body)
    if not body.get("success"):
        raise graph_error(ErrorKind.UPSTREAM_VALIDATION, body.get("message") or failure, service="auth")
    source = body if body.get("accessToken") else payload_data(body)
    user = _user_of(body)
    access_token = source.get("accessToken")
    refresh_token = source.get("refreshToken")
    if not user or not access_token or not refresh_token:
        raise graph_error(ErrorKind.UPSTREAM_UNAVAILABLE, "Invalid response from authentication service",
                          service="auth")
    return AuthPayload(user=to_user(user), access_token=access_token, refresh_token=refresh_token)

def to_user_pagination(raw: Any, page: Optional[int], limit: Optional[int], count: int) -> UserPagination:
    base = to_pagination(raw, page, limit, count)
    raw = raw if isinstance(raw, dict) else {}
    return UserPagination(
        page=base.page,
        limit=base.limit,
        total=base.total,
        pages=base.pages,
        seller_count=raw.get("sellerCount"),
        admin_count=raw.get("adminCount"),
        customer_count=raw.get("customerCount"),
    )

def _failed(default: str, response_type: type):
    def fallback(error: Exception, **_: Any):
        return response_type(success=False, message=message_of(error, default))
    return fallback

def _none(*_: Any, **__: Any) -> None:
    return None

@strawberry.type
class UserQuery:
    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def me(self, info: Info) -> Optional[User]:
        body = await info.context.clients.auth.get("/api/auth/me", context=info.context.request_context)
        user = _user_of(body)
        return to_user(user) if user else None

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def users(self, info: Info, page: Optional[int] = None, limit: Optional[int] = None,
                    search: Optional[str] = None, role: Optional[str] = None) -> UserConnection:
        body = await info.context.clients.auth.get(
            "/api/users", context=info.context.request_context,
            params={"page": page, "limit": limit, "search": search, "role": role})
        data = payload_data(body)
        users = [to_user(raw) for raw in items_of(data, "users")]
        return UserConnection(users=users, pagination=to_user_pagination(data.get("pagination"), page, limit, len(users)))

    # Public: micro-frontend hand-off exchanges a user id for fresh tokens
    @strawberry.field(extensions=[BestEffort(_none)])
    async def get_user_by_id(self, info: Info, id: strawberry.ID) -> Optional[UserAuthPayload]:
        body = _envelope(await info.context.clients.auth.get(f"/api/auth/user/{id}"))
        if not body.get("success"):
            return None
        data = payload_data(body)
        user = data.get("user")
        if not isinstance(user, dict) or not data.get("accessToken"):
            return None
        return UserAuthPayload(
            user=to_user(user),
            access_token=data["accessToken"],
            refresh_token=data.get("refreshToken") or "",
            token_expiry=float(data.get("tokenExpiry") or 0),
        )

    @strawberry.field(extensions=[BestEffort(_failed("Invalid or expired reset token", ValidateTokenResponse))])
    async def validate_reset_token(self, info: Info, token: str) -> ValidateTokenResponse:
        body = _envelope(await info.context.clients.auth.get(f"/api/auth/validate-reset-token/{token}"))
        return ValidateTokenResponse(success=bool(body.get("success")), message=body.get("message") or "",
                                     email=body.get("email"))

    @strawberry.field(extensions=[BestEffort(_failed("Invalid or expired email verification token",
                                                     ValidateTokenResponse))])
    async def validate_email_token(self, info: Info, token: str) -> ValidateTokenResponse:
        body = _envelope(await info.context.clients.auth.get(f"/api/auth/validate-email-token/{token}"))
        return ValidateTokenResponse(success=bool(body.get("success")), message=body.get("message") or "",
                                     email=body.get("email"))

@strawberry.type
class UserMutation:
    @strawberry.field(extensions=[Mandatory()])
    async def login(self, info: Info, input: LoginInput) -> AuthPayload:
        body = await info.context.clients.auth.post(
            "/api/auth/login", {"email": input.email, "password": input.password})
        return to_auth_payload(body, "Login failed")

    @strawberry.field(extensions=[Mandatory()])
    async def register(self, info: Info, input: RegisterInput) -> AuthPayload:
        payload = {"email": input.email, "password": input.password, "name": input.name}
        if input.role:
            payload["role"] = input.role
        body = await info.context.clients.auth.post("/api/auth/register", payload)
        return to_auth_payload(body, "Registration failed")

    @strawberry.field(extensions=[Mandatory()])
    async def google_auth(self, info: Info, input: GoogleAuthInput) -> AuthPayload:
        body = await info.context.clients.auth.post("/api/auth/google", {"idToken": input.id_token})
        return to_auth_payload(body, "Google authentication failed")

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def logout(self, info: Info) -> bool:
        await info.context.clients.auth.post("/api/auth/logout", {}, context=info.context.request_context)
        return True

    @strawberry.field(permission_classes=[IsAuthenticated],
                      extensions=[BestEffort(_failed("Failed to update profile", UpdateProfileResponse))])
    async def update_profile(self, info: Info, input: UpdateProfileInput) -> UpdateProfileResponse:
        changes = {}
        if input.name:
            changes["name"] = input.name
        if input.phone is not None:
            changes["phone"] = input.phone
        body = _envelope(await info.context.clients.auth.put(
            "/api/auth/me", changes, context=info.context.request_context))
        user = _user_of(body)
        return UpdateProfileResponse(success=bool(body.get("success")), message=body.get("message"),
                                     user=to_user(user) if user else None)

    @strawberry.field(permission_classes=[IsAuthenticated],
                      extensions=[BestEffort(_failed("Failed to change password", ChangePasswordResponse))])
    async def change_password(self, info: Info, input: ChangePasswordInput) -> ChangePasswordResponse:
        body = _envelope(await info.context.clients.auth.post(
            "/api/auth/change-password",
            {"currentPassword": input.current_password, "newPassword": input.new_password},
            context=info.context.request_context))
        return ChangePasswordResponse(success=bool(body.get("success")), message=body.get("message"))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def update_user_role(self, info: Info, id: strawberry.ID, role: str) -> User:
        body = await info.context.clients.auth.patch(
            f"/api/users/{id}/role", {"role": role}, context=info.context.request_context)
        return to_user(require_entity(pick(payload_data(body), "user"), "auth"))

    @strawberry.field(permission_classes=[IsAuthenticated], extensions=[Mandatory()])
    async def delete_user(self, info: Info, id: strawberry.ID) -> bool:
        await info.context.clients.auth.delete(f"/api/users/{id}", context=info.context.request_context)
        return True

    @strawberry.field(permission_classes=[IsAuthenticated],
                      extensions=[BestEffort(_failed("Failed to send verification email", VerificationResponse))])
    async def send_verification_email(
            self, info: Info,
            origin: Annotated[Optional[str], strawberry.argument(name="source")] = None,
    ) -> VerificationResponse:
        body = _envelope(await info.context.clients.auth.post(
            "/api/auth/send-verification-email", {"source": origin or "storefront"},
            context=info.context.request_context))
        return VerificationResponse(success=bool(body.get("success")), message=body.get("message") or "")

    @strawberry.field(permission_classes=[IsAuthenticated],
                      extensions=[BestEffort(_failed("Failed to verify email", VerifyEmailResponse))])
    async def verify_email(self, info: Info) -> VerifyEmailResponse:
        body = _envelope(await info.context.clients.auth.post(
            "/api/auth/verify-email", {}, context=info.context.request_context))
        user = _user_of(body)
        return VerifyEmailResponse(success=bool(body.get("success")), message=body.get("message") or "",
                                   user=to_user(user) if user else None)

    @strawberry.field(extensions=[BestEffort(_failed("Failed to verify email", VerifyEmailResponse))])
    async def verify_email_by_token(self, info: Info, token: str) -> VerifyEmailResponse:
        body = _envelope(await info.context.clients.auth.post("/api/auth/verify-email-token", {"token": token}))
        user = _user_of(body)
        return VerifyEmailResponse(success=bool(body.get("success")), message=body.get("message") or "",
                                   user=to_user(user) if user else None)

    @strawberry.field(extensions=[BestEffort(_failed("Failed to process password reset request",
                                                     ForgotPasswordResponse))])
    async def forgot_password(self, info: Info, email: str, domain: str) -> ForgotPasswordResponse:
        body = _envelope(await info.context.clients.auth.post(
            "/api/auth/forgot-password", {"email": email, "domain": domain}))
        return ForgotPasswordResponse(
            success=bool(body.get("success")),
            message=body.get("message") or "",
            reset_token=body.get("resetToken"),
            reset_url=body.get("resetUrl"),
        )

    @strawberry.field(extensions=[BestEffort(_failed("Failed to reset password", ResetPasswordResponse))])
    async def reset_password(self, info: Info, token: str, password: str,
                             confirm_password: str) -> ResetPasswordResponse:
        body = _envelope(await info.context.clients.auth.post(
            "/api/auth/reset-password",
            {"token": token, "password": password, "confirmPassword": confirm_password}))
        return ResetPasswordResponse(success=bool(body.get("success")), message=body.get("message") or "")
