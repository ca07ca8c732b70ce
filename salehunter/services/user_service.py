"""
User profile and account administration.
"""

from datetime import datetime
from typing import Any, Callable, Mapping

from loguru import logger

from salehunter.storage.models import utcnow
from salehunter.storage.unit_of_work import UnitOfWork

from .context import present
from .result import ServiceResult


class UserService:
    def __init__(
        self,
        uow: UnitOfWork,
        image_storage,
        log=None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.image_storage = image_storage
        self.log = log or logger
        self.clock = clock

    async def get_user(self, user_id: int) -> ServiceResult:
        user = await self.uow.users.get(user_id)
        if user is None:
            return ServiceResult.not_found("User not found")
        return ServiceResult.ok(user)

    async def get_profile(self, user_id: int) -> ServiceResult:
        return await self.get_user(user_id)

    async def get_all_users(self) -> ServiceResult:
        return ServiceResult.ok(await self.uow.users.list_all())

    async def update_profile(self, user_id: int, changes: Mapping[str, Any]) -> ServiceResult:
        """Sparse update of name and phone; the profile image upload is best-effort."""
        user = await self.uow.users.get(user_id)
        if user is None:
            return ServiceResult.not_found("User not found")

        if present(changes.get("name")):
            user.name = changes["name"]
        if present(changes.get("phone_number")):
            user.phone_number = changes["phone_number"]

        if present(changes.get("profile_image_base64")):
            try:
                user.profile_image_url = await self.image_storage.upload_base64(
                    changes["profile_image_base64"],
                    f"users/{user_id}/profile",
                )
            except Exception as e:
                self.log.warning(f"Failed to upload profile image for user {user_id}: {type(e).__name__}: {e}")

        user.updated_at = self.clock()
        await self.uow.commit()
        return ServiceResult.ok(user, "Profile updated successfully")

    async def deactivate_user(self, user_id: int) -> ServiceResult:
        # Issued access tokens stay valid until they expire
        return await self._set_active(user_id, False, "User deactivated successfully")

    async def activate_user(self, user_id: int) -> ServiceResult:
        return await self._set_active(user_id, True, "User activated successfully")

    async def _set_active(self, user_id: int, active: bool, message: str) -> ServiceResult:
        user = await self.uow.users.get(user_id)
        if user is None:
            return ServiceResult.not_found("User not found")

        user.is_active = active
        user.updated_at = self.clock()
        await self.uow.commit()

        self.log.info(f"User {user_id} is_active={active}")
        return ServiceResult.ok(True, message)
