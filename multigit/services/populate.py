"""
Expansion of stored references into the nested documents the API returns.
"""

from typing import Any, Dict, List, Optional

from ..core.entities import Team, TeamSet, Assessment, Result
from ..core.interfaces import DocumentStore
from ..persistence.repositories import UserRepository, TeamRepository, TeamSetRepository, ResultRepository


def sort_by_name(users: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort user documents by name, ignoring case."""
    return sorted(users, key=lambda user: (user.get('name') or "").casefold())


class DocumentPopulator:
    """Replaces ``_id`` references with the referenced documents."""

    def __init__(self, database: DocumentStore):
        self._user_repo = UserRepository(database)
        self._team_repo = TeamRepository(database)
        self._team_set_repo = TeamSetRepository(database)
        self._result_repo = ResultRepository(database)

    def users(self, user_ids: List[str]) -> List[Dict[str, Any]]:
        return [user.to_dict() for user in self._user_repo.find_by_ids(user_ids)]

    def user(self, user_id: Optional[str]) -> Optional[Dict[str, Any]]:
        user = self._user_repo.find_by_id(user_id)
        return user.to_dict() if user else None

    def team(self, team: Team) -> Dict[str, Any]:
        data = team.to_dict()
        data['members'] = self.users(team.members)
        data['TA'] = self.user(team.ta)
        return data

    def team_set(self, team_set: TeamSet) -> Dict[str, Any]:
        data = team_set.to_dict()
        data['teams'] = [self.team(team) for team in self._team_repo.find_by_ids(team_set.teams)]
        return data

    def team_set_by_id(self, team_set_id: Optional[str]) -> Optional[Dict[str, Any]]:
        team_set = self._team_set_repo.find_by_id(team_set_id)
        return team_set.to_dict() if team_set else None

    def result(self, result: Result) -> Dict[str, Any]:
        data = result.to_dict()
        data['marker'] = self.user(result.marker)
        team = self._team_repo.find_by_id(result.team)
        data['team'] = self.team(team) if team else None
        return data

    def assessment(self, assessment: Assessment, with_results: bool = False) -> Dict[str, Any]:
        data = assessment.to_dict()
        data['teamSet'] = self.team_set_by_id(assessment.team_set)
        if with_results:
            data['results'] = [self.result(r) for r in self._result_repo.find_by_ids(assessment.results)]
        return data
