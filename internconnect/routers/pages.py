"""Page routes: the guarded route table and the data each page renders."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.responses import Response

from internconnect.core.exceptions import not_found_exception
from internconnect.core.guards import (
    GuardDecision,
    GuardState,
    Loading,
    Redirect,
    evaluate_protected,
    evaluate_public,
)
from internconnect.routers.deps import get_user_session
from internconnect.schemas.application import Application, ApplicationStatus
from internconnect.schemas.profile import CompanyProfile
from internconnect.services.user_session import UserSession
from internconnect.utils.transitions import allowed_transitions

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

STUDENT = ("student",)
COMPANY = ("company",)

PageBuilder = Callable[[], Awaitable[dict[str, Any]]]


def guard_state(session: UserSession, path: str) -> GuardState:
    return GuardState(
        auth_loading=session.auth.is_loading,
        profile_loading=session.profiles.loading,
        is_authenticated=session.auth.is_authenticated,
        profile=session.profiles.profile,
        path=path,
    )


def decision_response(decision: GuardDecision) -> Response | None:
    """HTTP answer for a non-render decision; ``None`` means render."""
    if isinstance(decision, Loading):
        return JSONResponse(status_code=202, content={"status": "loading"})
    if isinstance(decision, Redirect):
        location = decision.to
        if decision.from_path:
            location = f"{location}?from={quote(decision.from_path)}"
        return RedirectResponse(url=location, status_code=307)
    return None


async def render(
    request: Request,
    session: UserSession,
    page: str,
    build: PageBuilder | None = None,
    *,
    roles: tuple[str, ...] | None = None,
    protected: bool = False,
    public_only: bool = False,
) -> Any:
    path = request.url.path
    state = guard_state(session, path)
    if protected or roles:
        decision = evaluate_protected(state, roles)
    elif public_only:
        decision = evaluate_public(state)
    else:
        decision = None

    if decision is not None:
        response = decision_response(decision)
        if response is not None:
            logger.debug(f"Guard on {path}: {decision}")
            return response

    payload = await build() if build else {}
    return {"page": page, **payload}


def group_by_status(applications: list[Application]) -> dict[str, list[Application]]:
    """Tabs shown on application lists."""
    in_progress = {ApplicationStatus.SUBMITTED, ApplicationStatus.REVIEWING}
    return {
        "in_progress": [a for a in applications if a.status in in_progress],
        "shortlisted": [a for a in applications if a.status == ApplicationStatus.SHORTLISTED],
        "completed": [
            a
            for a in applications
            if a.status in (ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED)
        ],
    }


def search_applicants(applications: list[Application], query: str) -> list[Application]:
    if not query:
        return applications
    needle = query.lower()
    return [
        a
        for a in applications
        if needle in ((a.profiles.full_name if a.profiles else None) or "").lower()
        or needle in ((a.internships.title if a.internships else None) or "").lower()
    ]


def newest_first(applications: list[Application]) -> list[Application]:
    return sorted(applications, key=lambda a: a.submitted_at or "", reverse=True)


# Public pages


@router.get("/")
async def home(request: Request, session: UserSession = Depends(get_user_session)):
    async def build():
        await session.internships.fetch_internships()
        internships = session.internships.internships
        featured = sorted(internships, key=lambda i: i.created_at or "", reverse=True)[:3]
        return {
            "featured": featured,
            "stats": {
                "internships": len(internships),
                "companies": len({i.company_id for i in internships}),
            },
        }

    return await render(request, session, "home", build)


@router.get("/internships")
async def internships_page(
    request: Request,
    q: str = Query(default=""),
    location: str | None = Query(default=None),
    category: str | None = Query(default=None),
    type: str | None = Query(default=None),
    session: UserSession = Depends(get_user_session),
):
    async def build():
        await session.internships.fetch_internships()
        return {
            "internships": session.internships.filter_internships(q, location, category, type),
            "filters": session.internships.filter_options(),
        }

    return await render(request, session, "internships", build)


@router.get("/internships/{internship_id}")
async def internship_detail(
    request: Request, internship_id: str, session: UserSession = Depends(get_user_session)
):
    async def build():
        internship = await session.internships.fetch_internship_by_id(internship_id)
        if internship is None:
            raise not_found_exception("Internship not found")
        await session.applications.fetch_applications()
        return {
            "internship": internship,
            "has_applied": session.applications.has_applied(internship_id),
        }

    return await render(request, session, "internship-detail", build)


@router.get("/company/{company_id}")
async def company_page(
    request: Request, company_id: str, session: UserSession = Depends(get_user_session)
):
    async def build():
        company = await session.profiles.fetch_public_profile(company_id)
        if not isinstance(company, CompanyProfile):
            raise not_found_exception("Company not found")
        await session.internships.fetch_internships()
        return {
            "company": company,
            "internships": session.internships.internships_for_company(company_id),
        }

    return await render(request, session, "company-profile", build)


# Pages for visitors who have not finished onboarding


@router.get("/login")
async def login_page(request: Request, session: UserSession = Depends(get_user_session)):
    return await render(request, session, "login", public_only=True)


@router.get("/student-register")
async def student_register_page(
    request: Request, session: UserSession = Depends(get_user_session)
):
    return await render(request, session, "student-register", public_only=True)


@router.get("/company-register")
async def company_register_page(
    request: Request, session: UserSession = Depends(get_user_session)
):
    return await render(request, session, "company-register", public_only=True)


@router.get("/student-profile-creation")
async def student_profile_creation(
    request: Request, session: UserSession = Depends(get_user_session)
):
    async def build():
        return {"profile": session.profiles.profile}

    return await render(request, session, "student-profile-creation", build, public_only=True)


@router.get("/company-profile-creation")
async def company_profile_creation(
    request: Request, session: UserSession = Depends(get_user_session)
):
    async def build():
        return {"profile": session.profiles.profile}

    return await render(request, session, "company-profile-creation", build, public_only=True)


# Student pages


@router.get("/student-portal")
async def student_portal(request: Request, session: UserSession = Depends(get_user_session)):
    async def build():
        await session.refresh()
        student = session.profiles.profile
        applications = session.applications.applications
        return {
            "profile": student,
            "recent_applications": newest_first(applications)[:3],
            "counts": session.applications.status_counts(),
            "recommended": session.internships.recommend_for(student, applications),
        }

    return await render(request, session, "student-portal", build, roles=STUDENT)


@router.get("/student-profile")
async def student_profile(request: Request, session: UserSession = Depends(get_user_session)):
    async def build():
        return {"profile": session.profiles.profile}

    return await render(request, session, "student-profile", build, roles=STUDENT)


@router.get("/internships/{internship_id}/apply")
async def apply_page(
    request: Request, internship_id: str, session: UserSession = Depends(get_user_session)
):
    async def build():
        internship = await session.internships.fetch_internship_by_id(internship_id)
        if internship is None:
            raise not_found_exception("Internship not found")
        await session.applications.fetch_applications()
        resumes = [
            doc for doc in session.profiles.profile.documents if doc.file_type == "resume"
        ]
        return {
            "internship": internship,
            "resumes": [
                {"document": doc, "url": session.applications.resume_url_for(doc)}
                for doc in resumes
            ],
            "has_applied": session.applications.has_applied(internship_id),
        }

    return await render(request, session, "apply", build, roles=STUDENT)


@router.get("/student-applications")
async def student_applications(
    request: Request, session: UserSession = Depends(get_user_session)
):
    async def build():
        await session.applications.fetch_applications()
        applications = newest_first(session.applications.applications)
        return {
            "applications": applications,
            "tabs": group_by_status(applications),
        }

    return await render(request, session, "student-applications", build, roles=STUDENT)


# Company pages


@router.get("/company-dashboard")
async def company_dashboard(request: Request, session: UserSession = Depends(get_user_session)):
    async def build():
        await session.refresh()
        company = session.profiles.profile
        internships = session.internships.internships_for_company(company.id)
        applications = session.applications.applications
        return {
            "profile": company,
            "internships": [
                {
                    "internship": internship,
                    "application_count": len(
                        session.applications.applications_for_internship(internship.id)
                    ),
                }
                for internship in internships
            ],
            "recent_applications": newest_first(applications)[:5],
            "counts": session.applications.status_counts(),
        }

    return await render(request, session, "company-dashboard", build, roles=COMPANY)


@router.get("/post-internship")
async def post_internship_page(
    request: Request, session: UserSession = Depends(get_user_session)
):
    return await render(request, session, "post-internship", roles=COMPANY)


@router.get("/edit-internship/{internship_id}")
async def edit_internship_page(
    request: Request, internship_id: str, session: UserSession = Depends(get_user_session)
):
    async def build():
        internship = await session.internships.fetch_internship_by_id(internship_id)
        if internship is None or internship.company_id != session.profiles.profile.id:
            raise not_found_exception("Internship not found")
        return {"internship": internship}

    return await render(request, session, "edit-internship", build, roles=COMPANY)


@router.get("/company-applications")
async def company_applications(
    request: Request,
    q: str = Query(default=""),
    session: UserSession = Depends(get_user_session),
):
    async def build():
        await session.applications.fetch_applications()
        applications = newest_first(search_applicants(session.applications.applications, q))
        return {"applications": applications, "tabs": group_by_status(applications)}

    return await render(request, session, "company-applications", build, roles=COMPANY)


@router.get("/internships/{internship_id}/applications")
async def internship_applications(
    request: Request,
    internship_id: str,
    q: str = Query(default=""),
    session: UserSession = Depends(get_user_session),
):
    async def build():
        internship = await session.internships.fetch_internship_by_id(internship_id)
        if internship is None or internship.company_id != session.profiles.profile.id:
            raise not_found_exception("Internship not found")
        await session.applications.fetch_applications()
        applications = newest_first(
            search_applicants(session.applications.applications_for_internship(internship_id), q)
        )
        return {
            "internship": internship,
            "applications": applications,
            "tabs": group_by_status(applications),
        }

    return await render(request, session, "internship-applications", build, roles=COMPANY)


@router.get("/applications/{application_id}/review")
async def review_application(
    request: Request, application_id: str, session: UserSession = Depends(get_user_session)
):
    async def build():
        await session.applications.fetch_applications()
        application = session.applications.get_application(application_id)
        if application is None:
            raise not_found_exception("Application not found")
        return {
            "application": application,
            "allowed_statuses": sorted(
                s.value for s in allowed_transitions(application.status)
            ),
        }

    return await render(request, session, "review-application", build, roles=COMPANY)


# Pages for either role


@router.get("/edit-profile")
async def edit_profile_page(request: Request, session: UserSession = Depends(get_user_session)):
    async def build():
        return {"profile": session.profiles.profile}

    return await render(request, session, "edit-profile", build, protected=True)


@router.get("/applications/{application_id}")
async def application_detail(
    request: Request, application_id: str, session: UserSession = Depends(get_user_session)
):
    async def build():
        await session.applications.fetch_applications()
        application = session.applications.get_application(application_id)
        if application is None:
            raise not_found_exception("Application not found")
        internship = await session.internships.fetch_internship_by_id(application.internship_id)
        return {"application": application, "internship": internship}

    return await render(request, session, "application-detail", build, protected=True)
