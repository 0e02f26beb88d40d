"""
Project-management view-models derived from a team's Jira board.

Everything here is arithmetic over an already-stored board snapshot:
per-assignee statistics for each sprint, the velocity chart and the
columns of the active sprint. ``ProjectManagementService`` bundles them
for one team.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.enums import SprintState
from ..core.exceptions import NotFoundError, BadRequestError
from ..core.interfaces import DocumentStore
from ..persistence.repositories import TeamRepository, UserRepository, JiraBoardRepository


UNASSIGNED = "Unassigned"
TOTAL = "Total"
DONE = "Done"
# story points are compared against a 16-hour budget per issue
HOURS_PER_ISSUE = 16


def parse_jira_date(value: Optional[str]) -> datetime:
    """Parse a Jira ISO timestamp into an aware datetime (UTC when unzoned)."""
    if not value:
        return datetime.min.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _fields(issue: Dict[str, Any]) -> Dict[str, Any]:
    return issue.get('fields') or {}


def _named(value: Optional[Dict[str, Any]], key: str = 'name') -> Optional[str]:
    return value.get(key) if value else None


def story_points(issue: Dict[str, Any]) -> float:
    return issue.get('storyPoints') or 0


def assignee_name(issue: Dict[str, Any]) -> str:
    name = _named(_fields(issue).get('assignee'), 'displayName')
    return UNASSIGNED if name is None else name


def is_done(issue: Dict[str, Any]) -> bool:
    return _named(_fields(issue).get('resolution')) == DONE


def started_sprints(sprints: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sprints that are active or closed."""
    return [s for s in sprints if s.get('state') != SprintState.FUTURE.value]


@dataclass
class AssigneeStats:
    assignee: str
    issues: int = 0
    story_points: float = 0
    story_points_per_issue: float = 0.0
    within_estimate: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'assignee': self.assignee,
            'issues': self.issues,
            'storyPoints': self.story_points,
            'storyPointsPerIssue': round(self.story_points_per_issue, 2),
            'withinEstimate': self.within_estimate,
        }


@dataclass
class SprintAssigneeStats:
    """Assignee table for one sprint."""
    sprint: str
    end_date: datetime
    rows: List[AssigneeStats] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sprint': self.sprint,
            'endDate': self.end_date.isoformat(),
            'rows': [row.to_dict() for row in self.rows],
        }


@dataclass
class SprintSummary:
    """One bar group of the velocity chart."""
    sprint: str
    end_date: datetime
    story_points_commitment: float = 0
    issues_commitment: int = 0
    story_points_completed: float = 0
    issues_completed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sprint': self.sprint,
            'endDate': self.end_date.isoformat(),
            'storyPointsCommitment': self.story_points_commitment,
            'issuesCommitment': self.issues_commitment,
            'storyPointsCompleted': self.story_points_completed,
            'issuesCompleted': self.issues_completed,
        }


@dataclass
class VelocityChart:
    sprints: List[SprintSummary] = field(default_factory=list)
    story_points_velocity: float = 0.0
    issues_velocity: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sprints': [s.to_dict() for s in self.sprints],
            'storyPointsVelocity': round(self.story_points_velocity, 2),
            'issuesVelocity': round(self.issues_velocity, 2),
        }


def _row_order(row: AssigneeStats):
    # named assignees alphabetically, then Unassigned, then Total
    if row.assignee == TOTAL:
        return (2, "")
    if row.assignee == UNASSIGNED:
        return (1, "")
    return (0, row.assignee.casefold())


def build_assignee_stats(sprints: List[Dict[str, Any]], hours_per_story_point: int = 4) -> List[SprintAssigneeStats]:
    """Per-sprint assignee tables for started sprints, newest sprint first."""
    if hours_per_story_point < 1:
        raise BadRequestError('Hours per story point must be at least 1')
    threshold = HOURS_PER_ISSUE / hours_per_story_point

    tables = []
    for sprint in started_sprints(sprints):
        by_assignee: Dict[str, AssigneeStats] = {}
        total = AssigneeStats(assignee=TOTAL)
        for issue in sprint.get('jiraIssues') or []:
            name = assignee_name(issue)
            stats = by_assignee.setdefault(name, AssigneeStats(assignee=name))
            stats.issues += 1
            stats.story_points += story_points(issue)
            total.issues += 1
            total.story_points += story_points(issue)
        by_assignee[TOTAL] = total

        rows = sorted(by_assignee.values(), key=_row_order)
        for row in rows:
            row.story_points_per_issue = row.story_points / row.issues if row.issues > 0 else 0.0
            row.within_estimate = row.story_points_per_issue <= threshold
        tables.append(SprintAssigneeStats(
            sprint=sprint.get('name', ""),
            end_date=parse_jira_date(sprint.get('endDate')),
            rows=rows,
        ))

    tables.sort(key=lambda table: table.end_date, reverse=True)
    return tables


def build_velocity_chart(sprints: List[Dict[str, Any]]) -> VelocityChart:
    """Commitment against completion per started sprint, oldest first.

    Velocity is the mean completed amount over those sprints.
    """
    summaries = []
    for sprint in started_sprints(sprints):
        summary = SprintSummary(sprint=sprint.get('name', ""), end_date=parse_jira_date(sprint.get('endDate')))
        for issue in sprint.get('jiraIssues') or []:
            summary.issues_commitment += 1
            summary.story_points_commitment += story_points(issue)
            if is_done(issue):
                summary.issues_completed += 1
                summary.story_points_completed += story_points(issue)
        summaries.append(summary)
    summaries.sort(key=lambda s: s.end_date)

    chart = VelocityChart(sprints=summaries)
    if summaries:
        chart.story_points_velocity = sum(s.story_points_completed for s in summaries) / len(summaries)
        chart.issues_velocity = sum(s.issues_completed for s in summaries) / len(summaries)
    return chart


def find_active_sprint(sprints: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return next((s for s in sprints if s.get('state') == SprintState.ACTIVE.value), None)


def _issue_card(issue: Dict[str, Any]) -> Dict[str, Any]:
    fields = _fields(issue)
    return {
        'summary': fields.get('summary') or "-",
        'issueType': _named(fields.get('issuetype')) or "-",
        'storyPoints': issue.get('storyPoints'),
        'assignee': _named(fields.get('assignee'), 'displayName') or "-",
    }


def build_active_sprint_board(sprints: List[Dict[str, Any]],
                              columns: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Issues of the active sprint grouped under the board's columns."""
    sprint = find_active_sprint(sprints)
    if sprint is None or not columns:
        return None
    board_columns = []
    for column in columns:
        name = column.get('name', "")
        issues = [
            _issue_card(issue) for issue in sprint.get('jiraIssues') or []
            if (_named(_fields(issue).get('status')) or "").lower() == name.lower()
        ]
        board_columns.append({'name': name, 'issues': issues})
    return {
        'sprint': sprint.get('name', ""),
        'startDate': sprint.get('startDate'),
        'endDate': sprint.get('endDate'),
        'columns': board_columns,
    }


class ProjectManagementService:
    """Assembles the project-management summary of a team."""

    def __init__(self, database: DocumentStore):
        self._team_repo = TeamRepository(database)
        self._user_repo = UserRepository(database)
        self._board_repo = JiraBoardRepository(database)

    def get_team_summary(self, team_id: str, hours_per_story_point: int = 4) -> Dict[str, Any]:
        team = self._team_repo.find_by_id(team_id)
        if not team:
            raise NotFoundError('Team not found')
        ta = self._user_repo.find_by_id(team.ta)
        board = self._board_repo.find_by_id(team.board)

        summary: Dict[str, Any] = {
            'team': team.id,
            'TA': ta.to_dict() if ta else None,
            'jiraProject': None,
            'currentSprint': None,
            'activeSprintBoard': None,
            'assigneeStats': [],
            'velocity': VelocityChart().to_dict(),
        }
        if board is None:
            return summary

        active = find_active_sprint(board.sprints)
        summary.update({
            'jiraProject': board.project_name,
            'currentSprint': active.get('name') if active else None,
            'activeSprintBoard': build_active_sprint_board(board.sprints, board.columns),
            'assigneeStats': [t.to_dict() for t in build_assignee_stats(board.sprints, hours_per_story_point)],
            'velocity': build_velocity_chart(board.sprints).to_dict(),
        })
        return summary
