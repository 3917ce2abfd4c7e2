"""Convenience exports for service layer."""
from .auth_service import (
    TokenClaims,
    authenticate_with_google,
    create_access_token,
    get_bearer_token,
    get_current_user,
    get_optional_user,
    hash_password,
    login_user,
    refresh_token,
    register_user,
    require_admin,
    verify_password,
    verify_token,
)
from .identity_service import FederatedIdentity, GoogleIdentityVerifier, get_identity_verifier
from .image_service import ProcessedImage, process_image
from .report_service import (
    apply_admin_action,
    create_report,
    delete_report,
    get_report,
    get_report_stats,
    list_pending_reports,
    list_reports,
    update_report,
)
from .storage_service import (
    StorageConfigurationError,
    StorageUploadError,
    delete_stored_file,
    upload_bytes,
)
from .user_service import (
    delete_user,
    get_user_by_id,
    get_user_stats,
    list_users,
    serialize_public_user,
    serialize_user,
    set_admin,
    update_user,
)
from .vote_service import cast_vote, recount_votes

__all__ = [
    "TokenClaims",
    "authenticate_with_google",
    "create_access_token",
    "get_bearer_token",
    "get_current_user",
    "get_optional_user",
    "hash_password",
    "login_user",
    "refresh_token",
    "register_user",
    "require_admin",
    "verify_password",
    "verify_token",
    "FederatedIdentity",
    "GoogleIdentityVerifier",
    "get_identity_verifier",
    "ProcessedImage",
    "process_image",
    "apply_admin_action",
    "create_report",
    "delete_report",
    "get_report",
    "get_report_stats",
    "list_pending_reports",
    "list_reports",
    "update_report",
    "StorageConfigurationError",
    "StorageUploadError",
    "delete_stored_file",
    "upload_bytes",
    "delete_user",
    "get_user_by_id",
    "get_user_stats",
    "list_users",
    "serialize_public_user",
    "serialize_user",
    "set_admin",
    "update_user",
    "cast_vote",
    "recount_votes",
]
