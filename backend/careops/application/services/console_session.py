"""Console session: the explicit context one signed-in user works in."""

import logging

from careops.application.interfaces import DocumentStore
from careops.application.services import authorization_policy as policy
from careops.application.services.attendance_service import AttendanceService
from careops.application.services.broadcast_service import BroadcastService
from careops.application.services.client_directory import ClientDirectory
from careops.application.services.identity_gate import GateState, IdentityGate
from careops.application.services.module_registry import get_module
from careops.application.services.record_service import RecordService
from careops.application.services.sync_manager import ChangeObserver, ErrorObserver, RealtimeSyncManager
from careops.application.services.visit_billing_service import VisitBillingService
from careops.config import Settings, get_settings
from careops.domain.entities import DashboardSummary, ModuleDescriptor, Principal, Profile

logger = logging.getLogger(__name__)


class ConsoleSession:
    """Owns the identity gate, the synced read model and the services for one user.

    Built before sign-in and torn down at sign-out; nothing it caches
    survives a principal switch. Category feeds run only while the profile
    is active.
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: Settings | None = None,
        *,
        on_sync_error: ErrorObserver | None = None,
        on_change: ChangeObserver | None = None,
    ):
        settings = settings or get_settings()
        self._default_focus = get_module(settings.default_focus).id
        self._focus = self._default_focus

        self.identity = IdentityGate(store)
        self.sync = RealtimeSyncManager(
            store,
            settings.core_categories,
            on_error=on_sync_error,
            on_change=on_change,
        )
        actor = self.identity.current_actor
        self.records = RecordService(store, actor)
        self.visits = VisitBillingService(
            store,
            self.records,
            ClientDirectory.from_sync(self.sync),
            actor,
            unit_minutes=settings.billing_unit_minutes,
            fallback_minutes=settings.missing_check_in_minutes,
            deduction_attempts=settings.deduction_attempts,
        )
        self.attendance = AttendanceService(store, self.records, actor)
        self.broadcasts = BroadcastService(self.records)

        self.identity.add_listener(self._on_profile_changed)

    @property
    def state(self) -> GateState:
        return self.identity.state

    @property
    def focus(self) -> str:
        return self._focus

    async def sign_in(self, principal: Principal) -> GateState:
        await self.identity.on_principal_changed(principal)
        return self.state

    async def sign_out(self) -> None:
        await self.identity.close()
        self.sync.close()
        self._focus = self._default_focus
        logger.info("Session signed out; cached tables cleared")

    def focus_on(self, module_id: str | None) -> ModuleDescriptor:
        """Switch the module in focus; unknown or hidden modules fall back to the default."""
        module = get_module(module_id)
        if not policy.can_see(self.identity.profile, module.id):
            module = get_module(self._default_focus)
        self._focus = module.id
        if self.state == GateState.ACTIVE:
            self.sync.set_focus(module.id)
        return module

    def visible_modules(self) -> list[ModuleDescriptor]:
        return policy.visible_modules(self.identity.profile)

    def can_write(self, category: str) -> bool:
        return policy.can_write(self.identity.profile, category)

    def dashboard(self) -> DashboardSummary:
        return DashboardSummary.from_tables(
            self.sync.records("clients"),
            self.sync.records("staff"),
            self.sync.records("evv"),
        )

    def _on_profile_changed(self, profile: Profile | None) -> None:
        if profile is None or not profile.is_active:
            self.sync.close()
            return
        if not policy.can_see(profile, self._focus):
            self._focus = self._default_focus
        self.sync.set_focus(self._focus)
