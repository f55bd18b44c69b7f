"""User registration, lookup, profile and role management."""

import logging
from typing import Iterable

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from identity_manager.core.exceptions import (
    DuplicateResourceError,
    InvalidArgumentError,
    NotFoundError,
    ValidationError,
)
from identity_manager.core.security import hash_password, verify_password
from identity_manager.core.storage import BlobNotFoundError, Storage, StorageError
from identity_manager.core.validation import password_error, validate_user_fields
from identity_manager.database import transaction
from identity_manager.models.role import Role, RoleName
from identity_manager.models.user import User
from identity_manager.schemas.common import Page, PageRequest
from identity_manager.schemas.user import UserResponse, UserUpdate

logger = logging.getLogger(__name__)


def avatar_url_for(user: User) -> str | None:
    """Public download path of a user's avatar, if one is set."""
    if user.avatar_filename is None:
        return None
    return f"/api/users/{user.id}/avatar"


def to_user_response(user: User) -> UserResponse:
    """Map a User entity to its read-only projection.

    Args:
        user: Persisted user entity

    Returns:
        UserResponse: Projection without the password hash
    """
    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        is_privacy_enabled=user.is_privacy_enabled,
        roles=frozenset(user.role_names),
        created_at=user.created_at,
        updated_at=user.updated_at,
        avatar_filename=user.avatar_filename,
        avatar_url=avatar_url_for(user),
    )


def parse_role_name(role_name: str) -> RoleName:
    """Parse a role name case-insensitively.

    Raises:
        InvalidArgumentError: If the name is not USER or ADMIN
    """
    try:
        return RoleName(role_name.strip().upper())
    except (ValueError, AttributeError):
        raise InvalidArgumentError(
            f"Invalid role name: {role_name}. Valid values are: USER, ADMIN"
        ) from None


def _like_pattern(keyword: str) -> str:
    escaped = keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"


class UserService:
    """Owns the rules for creating, reading, updating and deleting users.

    Callers only ever receive ``UserResponse`` projections. The one exception
    is ``authenticate``, which hands the entity to the authorization gate.

    Avatar blobs: ``update_user_avatar`` never touches storage (the caller
    stores or deletes the blob first), while ``delete_user`` removes the
    deleted user's avatar blob itself once the deletion has committed.
    ``update_account`` and ``update_own_account`` apply a whole edit form as
    one transaction.
    """

    def __init__(self, db: Session, storage: Storage | None = None):
        self.db = db
        self.storage = storage

    # ------------------------------------------------------------------
    # internal lookups
    # ------------------------------------------------------------------

    def _get_role(self, role_name: RoleName) -> Role:
        role = self.db.query(Role).filter(Role.name == role_name).first()
        if role is None:
            # Roles are normally seeded at startup; create the lookup row on first use otherwise
            role = Role(name=role_name)
            self.db.add(role)
            self.db.flush()
        return role

    def _find_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def _find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def _require_by_id(self, user_id: int) -> User:
        user = self._find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", "id", user_id)
        return user

    def _require_by_email(self, email: str) -> User:
        user = self._find_by_email(email)
        if user is None:
            raise NotFoundError("User", "email", email)
        return user

    # ------------------------------------------------------------------
    # creation
    # ------------------------------------------------------------------

    def register_user(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str | None = None,
        is_privacy_enabled: bool = False,
    ) -> UserResponse:
        """Register a new user with the default USER role.

        Args:
            email: Unique email address
            password: Plain text password, hashed before storage
            first_name: First name
            last_name: Last name
            phone: Optional phone number
            is_privacy_enabled: Initial privacy flag

        Returns:
            UserResponse: The created user

        Raises:
            DuplicateResourceError: If the email is already registered
            ValidationError: If a profile field is invalid
        """
        return self.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            is_privacy_enabled=is_privacy_enabled,
            roles=(RoleName.USER,),
        )

    def create_user(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str | None = None,
        is_privacy_enabled: bool = False,
        roles: Iterable[RoleName] = (RoleName.USER,),
    ) -> UserResponse:
        """Create a user with an explicit role set. USER is always included."""
        errors = validate_user_fields(first_name, last_name, phone)
        password_message = password_error(password)
        if password_message:
            errors["password"] = password_message
        if errors:
            raise ValidationError(errors)

        if self._find_by_email(email) is not None:
            raise DuplicateResourceError("User", "email", email)

        role_names = {RoleName.USER, *roles}

        try:
            with transaction(self.db):
                user = User(
                    email=email,
                    password_hash=hash_password(password),
                    first_name=first_name,
                    last_name=last_name,
                    phone=phone or None,
                    is_privacy_enabled=is_privacy_enabled,
                )
                # Stable order keeps the association inserts deterministic
                for role_name in sorted(role_names, key=lambda r: r.value):
                    user.roles.append(self._get_role(role_name))
                self.db.add(user)
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same email
            raise DuplicateResourceError("User", "email", email) from e

        self.db.refresh(user)
        logger.info(f"Registered user {user.id} ({user.email}) with roles {sorted(user.role_names)}")
        return to_user_response(user)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def get_all_users(self) -> list[UserResponse]:
        users = self.db.query(User).order_by(User.id).all()
        return [to_user_response(user) for user in users]

    def get_users_page(self, page_request: PageRequest) -> Page[UserResponse]:
        """Return one page of users ordered as requested."""
        return self._paginate(self.db.query(User), page_request)

    def search_users(self, keyword: str, page_request: PageRequest) -> Page[UserResponse]:
        """Case-insensitive substring search over email, first name and last name."""
        pattern = _like_pattern(keyword)
        query = self.db.query(User).filter(
            or_(
                func.lower(User.email).like(pattern, escape="\\"),
                func.lower(User.first_name).like(pattern, escape="\\"),
                func.lower(User.last_name).like(pattern, escape="\\"),
            )
        )
        return self._paginate(query, page_request)

    def search_users_by_name(self, name_fragment: str) -> list[UserResponse]:
        pattern = _like_pattern(name_fragment)
        users = (
            self.db.query(User)
            .filter(
                or_(
                    func.lower(User.first_name).like(pattern, escape="\\"),
                    func.lower(User.last_name).like(pattern, escape="\\"),
                )
            )
            .order_by(User.id)
            .all()
        )
        return [to_user_response(user) for user in users]

    def _paginate(self, query, page_request: PageRequest) -> Page[UserResponse]:
        total = query.order_by(None).count()
        sort_column = getattr(User, page_request.sort_by)
        ordering = sort_column.desc() if page_request.direction == "desc" else sort_column.asc()
        users = (
            query.order_by(ordering, User.id.asc())
            .offset(page_request.offset)
            .limit(page_request.size)
            .all()
        )
        return Page[UserResponse].build([to_user_response(user) for user in users], page_request, total)

    def get_user_by_id(self, user_id: int) -> UserResponse | None:
        user = self._find_by_id(user_id)
        return to_user_response(user) if user else None

    def get_user_by_email(self, email: str) -> UserResponse | None:
        user = self._find_by_email(email)
        return to_user_response(user) if user else None

    def get_users_by_role(self, role_name: str) -> list[UserResponse]:
        """List users holding a role.

        Raises:
            InvalidArgumentError: If the role name is not USER or ADMIN
        """
        role = parse_role_name(role_name)
        users = (
            self.db.query(User)
            .join(User.roles)
            .filter(Role.name == role)
            .order_by(User.id)
            .all()
        )
        return [to_user_response(user) for user in users]

    def count_users_with_privacy_enabled(self) -> int:
        return self.db.query(func.count(User.id)).filter(User.is_privacy_enabled.is_(True)).scalar() or 0

    def authenticate(self, email: str, password: str) -> User | None:
        """Verify credentials.

        Returns:
            User: The matching entity, or None when the email is unknown or the password is wrong
        """
        user = self._find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed authentication attempt for {email}")
            return None
        return user

    # ------------------------------------------------------------------
    # updates
    # ------------------------------------------------------------------

    @staticmethod
    def _check_profile(update: UserUpdate) -> None:
        errors = validate_user_fields(update.first_name, update.last_name, update.phone)
        if errors:
            raise ValidationError(errors)

    @staticmethod
    def _set_profile(user: User, update: UserUpdate) -> None:
        user.first_name = update.first_name
        user.last_name = update.last_name
        user.phone = update.phone or None
        user.touch()

    def _apply_profile(self, user: User, update: UserUpdate) -> UserResponse:
        self._check_profile(update)

        with transaction(self.db):
            self._set_profile(user, update)

        self.db.refresh(user)
        logger.info(f"Updated profile of user {user.id}")
        return to_user_response(user)

    def update_user(self, user_id: int, update: UserUpdate) -> UserResponse:
        """Update first name, last name and phone of a user by id.

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If a field is invalid
        """
        return self._apply_profile(self._require_by_id(user_id), update)

    def update_user_profile(self, email: str, update: UserUpdate) -> UserResponse:
        """Self-service variant of ``update_user`` keyed by the caller's email."""
        return self._apply_profile(self._require_by_email(email), update)

    def update_privacy_settings(self, email: str, is_privacy_enabled: bool) -> UserResponse:
        user = self._require_by_email(email)
        with transaction(self.db):
            user.is_privacy_enabled = is_privacy_enabled
            user.touch()
        self.db.refresh(user)
        logger.info(f"User {user.id} privacy set to {is_privacy_enabled}")
        return to_user_response(user)

    def update_user_avatar(self, email: str, avatar_filename: str | None) -> UserResponse:
        """Set or clear the avatar reference. Storage side effects belong to the caller."""
        user = self._require_by_email(email)
        with transaction(self.db):
            user.avatar_filename = avatar_filename
            user.touch()
        self.db.refresh(user)
        return to_user_response(user)

    def assign_role(self, user_id: int, role_name: str) -> UserResponse:
        role = self._get_role(parse_role_name(role_name))
        user = self._require_by_id(user_id)
        with transaction(self.db):
            if role not in user.roles:
                user.roles.append(role)
                user.touch()
        self.db.refresh(user)
        logger.info(f"Granted {role.name.value} to user {user.id}")
        return to_user_response(user)

    def revoke_role(self, user_id: int, role_name: str) -> UserResponse:
        """Remove a role from a user.

        Raises:
            InvalidArgumentError: For unknown role names, or when revoking USER
        """
        role_value = parse_role_name(role_name)
        if role_value is RoleName.USER:
            raise InvalidArgumentError("The USER role cannot be revoked")
        user = self._require_by_id(user_id)
        with transaction(self.db):
            for role in list(user.roles):
                if role.name == role_value:
                    user.roles.remove(role)
                    user.touch()
        self.db.refresh(user)
        logger.info(f"Revoked {role_value.value} from user {user.id}")
        return to_user_response(user)

    def update_account(
        self,
        user_id: int,
        update: UserUpdate,
        is_privacy_enabled: bool,
        is_admin: bool,
    ) -> UserResponse:
        """Apply an administrator's edit of profile, privacy flag and ADMIN role.

        All three changes commit together or not at all.

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If a profile field is invalid
        """
        user = self._require_by_id(user_id)
        self._check_profile(update)

        with transaction(self.db):
            admin_role = self._get_role(RoleName.ADMIN)
            self._set_profile(user, update)
            user.is_privacy_enabled = is_privacy_enabled
            if is_admin and admin_role not in user.roles:
                user.roles.append(admin_role)
            elif not is_admin and admin_role in user.roles:
                user.roles.remove(admin_role)
            user.touch()

        self.db.refresh(user)
        logger.info(f"Updated account of user {user.id} (privacy={is_privacy_enabled}, admin={is_admin})")
        return to_user_response(user)

    def update_own_account(
        self,
        email: str,
        update: UserUpdate,
        is_privacy_enabled: bool,
        avatar: tuple[str, bytes] | None = None,
    ) -> UserResponse:
        """Apply a user's own edit of profile, privacy flag and optionally the avatar.

        The profile is validated before any blob is written. The new avatar
        blob is stored first and the row changes commit together; a failed
        commit removes the new blob again and the previous blob is only
        deleted once the commit has succeeded.

        Args:
            email: Email of the signed-in user
            update: New profile fields
            is_privacy_enabled: New privacy flag
            avatar: Optional (original filename, content) of a new avatar image

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If a profile field is invalid
            StorageError: If the avatar blob cannot be written
        """
        user = self._require_by_email(email)
        user_id = user.id
        self._check_profile(update)

        new_filename = None
        if avatar is not None:
            new_filename = self._require_storage().save(*avatar)
        previous_filename = user.avatar_filename

        try:
            with transaction(self.db):
                self._set_profile(user, update)
                user.is_privacy_enabled = is_privacy_enabled
                if new_filename is not None:
                    user.avatar_filename = new_filename
        except Exception:
            if new_filename is not None:
                self._discard_blob(new_filename, user_id)
            raise

        if new_filename is not None and previous_filename:
            self._discard_blob(previous_filename, user_id)

        self.db.refresh(user)
        logger.info(f"User {user.id} updated own account")
        return to_user_response(user)

    # ------------------------------------------------------------------
    # deletion
    # ------------------------------------------------------------------

    def delete_user(self, user_id: int) -> None:
        """Delete a user together with its role links, tickets and avatar blob.

        Role associations go first, then owned tickets, then the user row, all
        in one transaction. The avatar blob is removed after the commit.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = self._require_by_id(user_id)
        avatar_filename = user.avatar_filename

        with transaction(self.db):
            user.roles.clear()
            self.db.flush()
            for ticket in list(user.tickets):
                self.db.delete(ticket)
            self.db.flush()
            self.db.expire(user, ["tickets"])
            self.db.delete(user)

        logger.info(f"Deleted user {user_id}")

        if avatar_filename and self.storage is not None:
            self._discard_blob(avatar_filename, user_id)

    def _discard_blob(self, filename: str, user_id: int) -> None:
        """Delete an avatar blob whose row change already happened or never will."""
        try:
            self.storage.delete(filename)
        except BlobNotFoundError:
            pass
        except StorageError as e:
            logger.error(f"Failed to delete avatar {filename} of user {user_id}: {e}")

    # ------------------------------------------------------------------
    # avatars
    # ------------------------------------------------------------------

    def _require_storage(self) -> Storage:
        if self.storage is None:
            raise StorageError("No avatar storage configured")
        return self.storage

    def replace_avatar(self, user_id: int, original_filename: str, content: bytes) -> UserResponse:
        """Store a new avatar blob and point the user at it.

        The previous blob is removed first. If recording the new name fails,
        the freshly stored blob is removed again.

        Raises:
            NotFoundError: If the user does not exist
            StorageError: If the blob cannot be written
        """
        storage = self._require_storage()
        user = self._require_by_id(user_id)

        if user.avatar_filename:
            try:
                storage.delete(user.avatar_filename)
            except BlobNotFoundError:
                logger.warning(f"Previous avatar {user.avatar_filename} of user {user_id} was already missing")

        filename = storage.save(original_filename, content)
        try:
            return self.update_user_avatar(user.email, filename)
        except Exception:
            storage.delete(filename)
            raise

    def remove_avatar(self, user_id: int) -> UserResponse:
        """Delete a user's avatar blob and clear the reference.

        Raises:
            NotFoundError: If the user does not exist or has no avatar
        """
        storage = self._require_storage()
        user = self._require_by_id(user_id)
        if user.avatar_filename is None:
            raise NotFoundError("Avatar", message=f"Avatar not found for user with id: {user_id}")

        try:
            storage.delete(user.avatar_filename)
        except BlobNotFoundError:
            logger.warning(f"Avatar {user.avatar_filename} of user {user_id} was already missing")

        return self.update_user_avatar(user.email, None)

    def read_avatar(self, user_id: int) -> tuple[str, bytes]:
        """Return the stored name and content of a user's avatar.

        Raises:
            NotFoundError: If the user, its avatar reference or the blob is missing
        """
        storage = self._require_storage()
        user = self._require_by_id(user_id)
        if user.avatar_filename is None:
            raise NotFoundError("Avatar", message=f"Avatar not found for user with id: {user_id}")
        try:
            return user.avatar_filename, storage.read(user.avatar_filename)
        except BlobNotFoundError:
            raise NotFoundError("Avatar", message=f"Avatar file missing for user with id: {user_id}") from None


def check_avatar_upload(content: bytes, content_type: str | None, max_size: int) -> None:
    """Reject empty, non-image or oversized avatar uploads.

    Raises:
        InvalidArgumentError: Describing the first rule the upload breaks
    """
    if not content:
        raise InvalidArgumentError("File is empty")
    if not (content_type or "").startswith("image/"):
        raise InvalidArgumentError("Only image files are allowed")
    if len(content) > max_size:
        raise InvalidArgumentError(f"File exceeds maximum size of {max_size} bytes")
