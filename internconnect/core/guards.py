"""Page access rules.

Both guards are pure functions of a :class:`GuardState` snapshot, so the page
router can evaluate them per request without touching the stores.
"""

from collections.abc import Collection
from dataclasses import dataclass

from internconnect.schemas.profile import CompanyProfile, StudentProfile

LOGIN_PATH = "/login"


@dataclass(frozen=True)
class GuardState:
    auth_loading: bool
    profile_loading: bool
    is_authenticated: bool
    profile: StudentProfile | CompanyProfile | None
    path: str

    @property
    def loading(self) -> bool:
        return self.auth_loading or self.profile_loading


@dataclass(frozen=True)
class Loading:
    """State is still being resolved; show a spinner."""


@dataclass(frozen=True)
class Render:
    """Show the requested page."""


@dataclass(frozen=True)
class Redirect:
    to: str
    from_path: str | None = None


GuardDecision = Loading | Render | Redirect


def evaluate_protected(
    state: GuardState, allowed_roles: Collection[str] | None = None
) -> GuardDecision:
    """Decide access to a page that needs a signed-in, onboarded user."""
    if state.loading:
        return Loading()

    if not state.is_authenticated or state.profile is None:
        return Redirect(LOGIN_PATH, from_path=state.path)

    profile = state.profile
    if not profile.profile_completed and state.path != profile.creation_path:
        return Redirect(profile.creation_path)

    if allowed_roles and profile.role not in allowed_roles:
        return Redirect(profile.dashboard_path)

    return Render()


def evaluate_public(state: GuardState) -> GuardDecision:
    """Decide access to pages meant for visitors who are not onboarded yet."""
    if state.loading:
        return Loading()

    profile = state.profile
    if not state.is_authenticated or profile is None:
        return Render()

    if profile.profile_completed:
        return Redirect(profile.dashboard_path)

    if state.path != profile.creation_path:
        return Redirect(profile.creation_path)

    return Render()
