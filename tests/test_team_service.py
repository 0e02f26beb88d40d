import pytest

from conftest import student_record
from multigit.core.exceptions import NotFoundError, BadRequestError
from multigit.persistence.repositories import (
    CourseRepository, UserRepository, TeamSetRepository, TeamRepository, JiraBoardRepository
)
from multigit.services import CourseService, TeamSetService, TeamService


@pytest.fixture
def course(database, faculty):
    account, _ = faculty
    courses = CourseService(database)
    course = courses.create_new_course({"name": "Software Engineering", "code": "CS3203"}, account.id)
    courses.add_students_to_course(course.id, [
        student_record("S001", "Alice"), student_record("S002", "Bob"),
    ])
    courses.add_tas_to_course(course.id, [student_record("T001", "Alan")])
    TeamSetService(database).create_team_set(course.id, "Project")
    return course


@pytest.fixture
def teams(database):
    return TeamService(database)


def _team(database, course_id, number, team_set_name="Project"):
    team_set = TeamSetRepository(database).find_by_course_and_name(course_id, team_set_name)
    return TeamRepository(database).find_by_team_set_and_number(team_set.id, number)


def test_team_set_names_are_unique_per_course(database, course):
    with pytest.raises(BadRequestError, match="same name"):
        TeamSetService(database).create_team_set(course.id, "Project")


def test_team_set_requires_course(database):
    with pytest.raises(NotFoundError, match="Course not found"):
        TeamSetService(database).create_team_set("missing", "Project")


def test_adding_students_creates_teams_on_demand(database, course, teams):
    teams.add_students_to_team(course.id, [
        {"identifier": "S001", "teamSet": "Project", "teamNumber": 1},
        {"identifier": "S002", "teamSet": "Project", "teamNumber": 1},
    ])

    team = _team(database, course.id, 1)
    users = UserRepository(database)
    assert team.members == [users.find_by_identifier("S001").id, users.find_by_identifier("S002").id]
    team_set = TeamSetRepository(database).find_by_course_and_name(course.id, "Project")
    assert team_set.teams == [team.id]


def test_student_moves_between_teams_of_same_set(database, course, teams):
    teams.add_students_to_team(course.id, [{"identifier": "S001", "teamSet": "Project", "teamNumber": 1}])
    teams.add_students_to_team(course.id, [{"identifier": "S001", "teamSet": "Project", "teamNumber": 2}])

    alice = UserRepository(database).find_by_identifier("S001")
    assert alice.id not in _team(database, course.id, 1).members
    assert _team(database, course.id, 2).members == [alice.id]


def test_rejects_people_outside_the_course(course, teams):
    with pytest.raises(BadRequestError, match="Invalid student"):
        teams.add_students_to_team(course.id, [{"identifier": "T001", "teamSet": "Project", "teamNumber": 1}])
    with pytest.raises(BadRequestError, match="Invalid TA"):
        teams.add_tas_to_team(course.id, [{"identifier": "S001", "teamSet": "Project", "teamNumber": 1}])
    with pytest.raises(BadRequestError, match="Invalid team set"):
        teams.add_students_to_team(course.id, [{"identifier": "S001", "teamSet": "Labs", "teamNumber": 1}])


def test_assign_ta_to_team(database, course, teams):
    teams.add_tas_to_team(course.id, [{"identifier": "T001", "teamSet": "Project", "teamNumber": 3}])

    alan = UserRepository(database).find_by_identifier("T001")
    assert _team(database, course.id, 3).ta == alan.id


def test_remove_member(database, course, teams):
    teams.add_students_to_team(course.id, [{"identifier": "S001", "teamSet": "Project", "teamNumber": 1}])
    team = _team(database, course.id, 1)
    alice = UserRepository(database).find_by_identifier("S001")

    teams.remove_member_by_id(team.id, alice.id)
    assert TeamRepository(database).find_by_id(team.id).members == []

    with pytest.raises(NotFoundError, match="Member not found"):
        teams.remove_member_by_id(team.id, alice.id)


def test_delete_team_detaches_from_team_set(database, course, teams):
    teams.add_students_to_team(course.id, [{"identifier": "S001", "teamSet": "Project", "teamNumber": 1}])
    team = _team(database, course.id, 1)

    teams.delete_team_by_id(team.id)

    assert TeamRepository(database).find_by_id(team.id) is None
    assert TeamSetRepository(database).find_by_course_and_name(course.id, "Project").teams == []
    with pytest.raises(NotFoundError, match="Team not found"):
        teams.delete_team_by_id(team.id)


def test_delete_team_set_removes_teams_and_course_reference(database, course, teams):
    teams.add_students_to_team(course.id, [{"identifier": "S001", "teamSet": "Project", "teamNumber": 1}])
    teams.set_jira_board(_team(database, course.id, 1).id, {"jiraLocation": {"projectName": "ALPHA"}})
    team_set = TeamSetRepository(database).find_by_course_and_name(course.id, "Project")

    TeamSetService(database).delete_team_set(team_set.id)

    assert TeamRepository(database).count() == 0
    assert JiraBoardRepository(database).count() == 0
    assert CourseRepository(database).find_by_id(course.id).team_sets == []
    with pytest.raises(NotFoundError, match="TeamSet not found"):
        TeamSetService(database).delete_team_set(team_set.id)


def test_set_jira_board_replaces_snapshot(database, course, teams):
    teams.add_students_to_team(course.id, [{"identifier": "S001", "teamSet": "Project", "teamNumber": 1}])
    team = _team(database, course.id, 1)

    first = teams.set_jira_board(team.id, {"jiraLocation": {"projectName": "ALPHA"}, "columns": [{"name": "To Do"}]})
    second = teams.set_jira_board(team.id, {"jiraLocation": {"projectName": "BETA"}, "jiraSprints": []})

    assert first.id == second.id
    assert JiraBoardRepository(database).count() == 1
    board = JiraBoardRepository(database).find_by_id(_team(database, course.id, 1).board)
    assert board.project_name == "BETA"
    assert board.columns == []
