"""Customer registration, login and staff account management."""

import logging
from typing import Dict, Optional

from havens.core.cache import CacheKeys
from havens.core.config import settings
from havens.core.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    PermissionDenied,
    ValidationFailed,
)
from havens.core.rbac import STAFF_ROLES, UserRole, default_permissions
from havens.core.security import DUMMY_PASSWORD_HASH, get_password_hash, verify_password
from havens.core.validators import EMAIL_RE, MIN_PASSWORD_LENGTH, validate_registration
from havens.models.user import User
from havens.services.store import DataStore

logger = logging.getLogger("auth")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountService:
    def __init__(self, store: DataStore):
        self.store = store

    def register_customer(
        self,
        name: str,
        phone: str,
        email: str,
        password: str,
        address: str,
    ) -> User:
        validate_registration(name, phone, email, password, address)
        email = normalize_email(email)
        if self.store.get_user_by_email(email) is not None:
            raise ConflictError("An account with this email already exists")

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            role=UserRole.CUSTOMER,
            name=name.strip(),
            phone=phone,
            address=address.strip(),
            is_active=True,
        )
        user.set_permissions(default_permissions(UserRole.CUSTOMER))
        self.store.save_user(user)
        self.store.commit(CacheKeys.CUSTOMERS)
        logger.info(f"Customer registered: {email}")
        return user

    def authenticate(self, email: str, password: str, staff: bool = False) -> User:
        """Check credentials for a customer (or staff) login.

        Unknown email, wrong password, inactive account and the wrong kind of
        account all raise the same InvalidCredentialsError.
        """
        user = self.store.get_user_by_email(normalize_email(email or ""))
        if user is None:
            # Keep timing identical to a wrong password
            verify_password(password or "", DUMMY_PASSWORD_HASH)
            logger.warning(f"Failed login for unknown email: {email}")
            raise InvalidCredentialsError()

        if not verify_password(password or "", user.password_hash):
            logger.warning(f"Failed login (bad password) for user {user.id}")
            raise InvalidCredentialsError()

        is_staff = user.role in STAFF_ROLES
        if not user.is_active or is_staff != staff:
            logger.warning(f"Failed login (inactive or wrong portal) for user {user.id}")
            raise InvalidCredentialsError()

        logger.info(f"Login: user {user.id} ({user.role.value})")
        return user

    # ------------------------------------------------------------------
    # Staff
    # ------------------------------------------------------------------

    def _check_staff_fields(self, email: Optional[str], password: Optional[str], role: Optional[UserRole]):
        errors: Dict[str, str] = {}
        if email is not None and not EMAIL_RE.match(email.strip()):
            errors["email"] = "Invalid email address"
        if password is not None and len(password) < MIN_PASSWORD_LENGTH:
            errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        if role is not None and UserRole(role) not in STAFF_ROLES:
            errors["role"] = "Not a staff role"
        if errors:
            raise ValidationFailed(errors)

    def _check_grant(
        self,
        actor,
        role: UserRole,
        outlet_id: Optional[int],
        permissions: Optional[Dict[str, bool]] = None,
    ) -> None:
        # Only a super admin creates super admins or unscoped staff
        if actor.role == UserRole.SUPER_ADMIN:
            return
        if role == UserRole.SUPER_ADMIN:
            raise PermissionDenied("Only a super admin can grant SUPER_ADMIN")
        if actor.outlet_id is not None and outlet_id != actor.outlet_id:
            raise PermissionDenied("Staff can only be managed within your own outlet")
        if permissions:
            held = actor.permissions
            beyond = sorted(flag for flag, granted in permissions.items() if granted and not held.get(flag))
            if beyond:
                raise PermissionDenied(f"Cannot grant permissions you do not hold: {', '.join(beyond)}")

    def get_staff(self, staff_id: int) -> User:
        user = self.store.get_user(staff_id)
        if user is None or user.role not in STAFF_ROLES:
            raise NotFoundError("Staff user", staff_id)
        return user

    def create_staff(
        self,
        actor,
        email: str,
        password: str,
        name: str,
        role: UserRole,
        outlet_id: Optional[int] = None,
        phone: Optional[str] = None,
        permissions: Optional[Dict[str, bool]] = None,
    ) -> User:
        """Create a staff account; permissions default from the role when not given."""
        self._check_staff_fields(email, password, role)
        role = UserRole(role)
        granted = default_permissions(role)
        granted.update(permissions or {})
        self._check_grant(actor, role, outlet_id, granted)
        email = normalize_email(email)
        if self.store.get_user_by_email(email) is not None:
            raise ConflictError("An account with this email already exists")
        if outlet_id is not None and self.store.get_outlet(outlet_id) is None:
            raise NotFoundError("Outlet", outlet_id)

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            role=role,
            name=name.strip(),
            phone=phone,
            outlet_id=outlet_id,
            is_active=True,
        )
        user.set_permissions(default_permissions(role))
        if permissions:
            user.set_permissions(permissions)
        self.store.save_user(user)
        self.store.commit(CacheKeys.STAFF)
        logger.info(f"Staff account {user.id} ({role.value}) created by {actor.email}")
        return user

    def update_staff(self, actor, staff_id: int, changes: dict) -> User:
        user = self.get_staff(staff_id)
        self._check_grant(actor, user.role, user.outlet_id)
        self._check_staff_fields(changes.get("email"), changes.get("password"), changes.get("role"))
        if user.id == actor.id and (changes.get("role") is not None or changes.get("permissions")):
            raise PermissionDenied("You cannot change your own role or permissions")

        if "role" in changes and changes["role"] is not None:
            self._check_grant(actor, UserRole(changes["role"]), changes.get("outlet_id", user.outlet_id))
            user.role = UserRole(changes["role"])
        if "outlet_id" in changes:
            self._check_grant(actor, user.role, changes["outlet_id"])
            user.outlet_id = changes["outlet_id"]
        if changes.get("email"):
            email = normalize_email(changes["email"])
            existing = self.store.get_user_by_email(email)
            if existing is not None and existing.id != user.id:
                raise ConflictError("An account with this email already exists")
            user.email = email
        if changes.get("password"):
            user.password_hash = get_password_hash(changes["password"])
        for field in ("name", "phone", "is_active"):
            if changes.get(field) is not None:
                setattr(user, field, changes[field])
        if changes.get("permissions"):
            self._check_grant(actor, user.role, user.outlet_id, changes["permissions"])
            user.set_permissions(changes["permissions"])

        self.store.save_user(user)
        self.store.commit(CacheKeys.STAFF)
        logger.info(f"Staff account {user.id} updated by {actor.email}")
        return user

    def delete_staff(self, actor, staff_id: int) -> None:
        user = self.get_staff(staff_id)
        if user.id == actor.id:
            raise PermissionDenied("You cannot delete your own account")
        self._check_grant(actor, user.role, user.outlet_id)
        self.store.delete_user(user)
        self.store.commit(CacheKeys.STAFF)
        logger.info(f"Staff account {staff_id} deleted by {actor.email}")


def bootstrap_super_admin(store: DataStore) -> Optional[User]:
    """Create the configured super admin account if it does not exist yet."""
    if not settings.super_admin_email or not settings.super_admin_password:
        return None
    email = normalize_email(settings.super_admin_email)
    existing = store.get_user_by_email(email)
    if existing is not None:
        return existing

    user = User(
        email=email,
        password_hash=get_password_hash(settings.super_admin_password),
        role=UserRole.SUPER_ADMIN,
        name=settings.super_admin_name,
        is_active=True,
    )
    user.set_permissions(default_permissions(UserRole.SUPER_ADMIN))
    store.save_user(user)
    store.commit(CacheKeys.STAFF)
    logger.info(f"Bootstrapped super admin account {email}")
    return user
