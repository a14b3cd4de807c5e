from django.urls import path

from core import (
    views_auth,
    views_ballot,
    views_candidates,
    views_dashboard,
    views_voters,
)

urlpatterns = [
    path("", views_auth.home, name="home"),

    path("dashboard", views_dashboard.dashboard, name="dashboard"),
    path("dashboard/voting", views_dashboard.dashboard_voting, name="dashboard-voting"),
    path("dashboard/reset-votes", views_dashboard.dashboard_reset_votes, name="dashboard-reset-votes"),

    path("student-dashboard", views_ballot.student_dashboard, name="student-dashboard"),
    path("student-dashboard/vote", views_ballot.student_vote, name="student-vote"),
    path("student/change-profile", views_auth.student_change_profile, name="student-change-profile"),

    path("candidates", views_candidates.candidates_list, name="candidates"),
    path("candidates/new/<str:level>", views_candidates.candidate_create, name="candidate-create"),
    path("candidates/<str:candidate_id>/edit", views_candidates.candidate_edit, name="candidate-edit"),
    path("candidates/<str:candidate_id>/delete", views_candidates.candidate_delete, name="candidate-delete"),

    path("voters", views_voters.voters_list, name="voters"),
    path("voters/new", views_voters.voter_create, name="voter-create"),
    path("voters/add", views_voters.voters_import, name="voters-import"),
    path("voters/<str:voter_id>/edit", views_voters.voter_edit, name="voter-edit"),
    path("voters/<str:voter_id>/delete", views_voters.voter_delete, name="voter-delete"),
]
