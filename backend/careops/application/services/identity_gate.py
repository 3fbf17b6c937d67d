"""Identity & activation gate: resolves a principal into a live application profile."""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from careops.application.interfaces import SERVER_TIMESTAMP, ChangeFeed, DocumentStore
from careops.domain.entities import Actor, Principal, Profile, Role
from careops.domain.exceptions import StoreUnavailableError, UnauthorizedError

logger = logging.getLogger(__name__)

PROFILE_COLLECTION = "users"

ProfileListener = Callable[[Profile | None], None]


class GateState(str, Enum):
    SIGNED_OUT = "signed_out"
    AWAITING_ACTIVATION = "awaiting_activation"
    ACTIVE = "active"


class IdentityGate:
    """Tracks the signed-in principal and its profile for one session.

    On the first sign-in of a principal the profile is created as
    pending/inactive. The profile document is then watched and every change
    is republished to listeners until the principal changes or signs out.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._principal: Principal | None = None
        self._profile: Profile | None = None
        self._feed: ChangeFeed | None = None
        self._watch_task: asyncio.Task | None = None
        self._listeners: list[ProfileListener] = []

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def profile(self) -> Profile | None:
        return self._profile

    @property
    def state(self) -> GateState:
        if self._principal is None or self._profile is None:
            return GateState.SIGNED_OUT
        if not self._profile.is_active:
            return GateState.AWAITING_ACTIVATION
        return GateState.ACTIVE

    def add_listener(self, listener: ProfileListener) -> Callable[[], None]:
        """Register a profile listener; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def resolve(self, principal: Principal) -> Profile:
        """Fetch the principal's profile, creating a pending one on first sight."""
        defaults = {
            "email": principal.email,
            "displayName": principal.display_name or "",
            "role": Role.PENDING.value,
            "isActive": False,
            "createdAt": SERVER_TIMESTAMP,
        }
        document = await self._store.ensure(PROFILE_COLLECTION, principal.id, defaults)
        return Profile.from_document(principal.id, document.data)

    async def on_principal_changed(self, principal: Principal | None) -> Profile | None:
        """Handle a sign-in/sign-out notification from the credential service."""
        self._stop_watching()
        if principal is None:
            self._principal = None
            self._set_profile(None)
            return None

        self._principal = principal
        profile = await self.resolve(principal)
        self._set_profile(profile)
        self._watch(principal.id)
        logger.info("Principal %s signed in (state=%s)", principal.id, self.state.value)
        return profile

    def current_actor(self) -> Actor:
        """The acting principal and profile; raises UnauthorizedError when signed out."""
        if self._principal is None or self._profile is None:
            raise UnauthorizedError("act without a signed-in profile")
        return Actor(principal=self._principal, profile=self._profile)

    async def close(self) -> None:
        await self.on_principal_changed(None)

    def _watch(self, principal_id: str) -> None:
        self._feed = self._store.subscribe(PROFILE_COLLECTION, document_id=principal_id)
        self._watch_task = asyncio.get_running_loop().create_task(
            self._consume(self._feed, principal_id)
        )

    async def _consume(self, feed: ChangeFeed, principal_id: str) -> None:
        try:
            async for documents in feed:
                if self._principal is None or self._principal.id != principal_id:
                    break
                if documents:
                    self._set_profile(Profile.from_document(principal_id, documents[0].data))
                else:
                    self._set_profile(None)
        except StoreUnavailableError as exc:
            logger.error("Profile feed for %s failed; keeping last profile: %s", principal_id, exc)

    def _stop_watching(self) -> None:
        if self._feed is not None:
            self._feed.close()
            self._feed = None
        if self._watch_task is not None:
            self._watch_task.cancel()
            self._watch_task = None

    def _set_profile(self, profile: Profile | None) -> None:
        if profile == self._profile:
            return
        self._profile = profile
        for listener in list(self._listeners):
            listener(profile)
