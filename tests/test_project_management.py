from datetime import datetime, timezone

import pytest

from multigit.core.exceptions import BadRequestError, NotFoundError
from multigit.core.entities import Team
from multigit.persistence.repositories import TeamRepository
from multigit.services import ProjectManagementService
from multigit.services.project_management import (
    build_assignee_stats, build_velocity_chart, build_active_sprint_board, parse_jira_date
)


def issue(assignee=None, points=None, done=False, status="To Do", summary="Task"):
    fields = {
        "summary": summary,
        "status": {"name": status},
        "issuetype": {"name": "Story"},
        "assignee": {"displayName": assignee} if assignee else None,
        "resolution": {"name": "Done"} if done else None,
    }
    return {"storyPoints": points, "fields": fields}


SPRINTS = [
    {
        "name": "Sprint 1", "state": "closed",
        "startDate": "2024-09-02T00:00:00.000Z", "endDate": "2024-09-15T00:00:00.000Z",
        "jiraIssues": [issue("bob", 3, done=True), issue("Alice", 5, done=True), issue(None, 2)],
    },
    {
        "name": "Sprint 2", "state": "active",
        "startDate": "2024-09-16T00:00:00.000Z", "endDate": "2024-09-29T00:00:00.000Z",
        "jiraIssues": [issue("Alice", 8, status="In Progress"), issue("Alice", 2, done=True, status="done")],
    },
    {
        "name": "Sprint 3", "state": "future",
        "startDate": "2024-09-30T00:00:00.000Z", "endDate": "2024-10-13T00:00:00.000Z",
        "jiraIssues": [issue("Alice", 13)],
    },
]


def test_parse_jira_date_handles_zulu_and_missing():
    assert parse_jira_date("2024-09-15T00:00:00.000Z") == datetime(2024, 9, 15, tzinfo=timezone.utc)
    assert parse_jira_date(None) == datetime.min.replace(tzinfo=timezone.utc)


def test_assignee_stats_skip_future_sprints_newest_first():
    tables = build_assignee_stats(SPRINTS)
    assert [table.sprint for table in tables] == ["Sprint 2", "Sprint 1"]


def test_assignee_rows_named_then_unassigned_then_total():
    sprint_one = build_assignee_stats(SPRINTS)[1]
    assert [row.assignee for row in sprint_one.rows] == ["Alice", "bob", "Unassigned", "Total"]
    total = sprint_one.rows[-1]
    assert total.issues == 3
    assert total.story_points == 10


def test_within_estimate_uses_hours_per_story_point():
    sprint_two = build_assignee_stats(SPRINTS, hours_per_story_point=4)[0]
    alice = sprint_two.rows[0]
    assert alice.story_points_per_issue == 5
    assert alice.within_estimate is False

    relaxed = build_assignee_stats(SPRINTS, hours_per_story_point=2)[0]
    assert relaxed.rows[0].within_estimate is True


def test_hours_per_story_point_must_be_positive():
    with pytest.raises(BadRequestError):
        build_assignee_stats(SPRINTS, hours_per_story_point=0)


def test_velocity_chart_oldest_first_with_mean_completion():
    chart = build_velocity_chart(SPRINTS)
    assert [s.sprint for s in chart.sprints] == ["Sprint 1", "Sprint 2"]
    assert chart.sprints[0].story_points_commitment == 10
    assert chart.sprints[0].story_points_completed == 8
    assert chart.sprints[1].issues_completed == 1
    assert chart.story_points_velocity == 5
    assert chart.issues_velocity == 1.5


def test_velocity_chart_without_sprints():
    chart = build_velocity_chart([]).to_dict()
    assert chart == {"sprints": [], "storyPointsVelocity": 0, "issuesVelocity": 0}


def test_active_sprint_board_groups_issues_by_column():
    board = build_active_sprint_board(SPRINTS, [{"name": "In Progress"}, {"name": "Done"}, {"name": "To Do"}])
    assert board["sprint"] == "Sprint 2"
    counts = {column["name"]: len(column["issues"]) for column in board["columns"]}
    assert counts == {"In Progress": 1, "Done": 1, "To Do": 0}
    assert board["columns"][0]["issues"][0]["assignee"] == "Alice"


def test_no_active_sprint_board():
    assert build_active_sprint_board(SPRINTS[:1], [{"name": "To Do"}]) is None


def test_team_summary_without_board(database):
    team = TeamRepository(database).save(Team(number=1, team_set="ts"))

    summary = ProjectManagementService(database).get_team_summary(team.id)
    assert summary["jiraProject"] is None
    assert summary["assigneeStats"] == []


def test_team_summary_unknown_team(database):
    with pytest.raises(NotFoundError, match="Team not found"):
        ProjectManagementService(database).get_team_summary("missing")
