from conftest import make_person, student_record
from multigit.core.enums import Role
from multigit.persistence.repositories import CourseRepository, UserRepository, TeamRepository, JiraBoardRepository


def _auth(account):
    return {"Authorization": account.id}


def _create_course(client, account):
    response = client.post("/api/courses", json={"name": "Software Engineering", "code": "CS3203"},
                           headers=_auth(account))
    assert response.status_code == 201
    return response.json()["_id"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_course_returns_id_and_message(client, faculty):
    account, _ = faculty
    response = client.post("/api/courses", json={"name": "SE", "code": "CS3203", "semester": "S1"},
                           headers=_auth(account))

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Course created successfully"
    assert body["_id"]


def test_missing_authorization_is_bad_request(client):
    response = client.post("/api/courses", json={"name": "SE", "code": "CS3203"})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing authorization"}

    assert client.get("/api/courses").status_code == 400


def test_invalid_body_is_bad_request(client, faculty):
    account, _ = faculty
    response = client.post("/api/courses", json={"code": "CS3203"}, headers=_auth(account))
    assert response.status_code == 400
    assert "name" in response.json()["error"]


def test_unknown_course_is_not_found(client, faculty):
    account, _ = faculty
    response = client.get("/api/courses/does-not-exist", headers=_auth(account))
    assert response.status_code == 404
    assert response.json() == {"error": "Course not found"}


def test_list_and_fetch_course(client, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)

    listed = client.get("/api/courses", headers=_auth(account)).json()
    assert [course["_id"] for course in listed] == [course_id]

    course = client.get(f"/api/courses/{course_id}", headers=_auth(account)).json()
    assert course["faculty"][0]["name"] == "Grace Hopper"
    assert client.get(f"/api/courses/{course_id}/code").json() == "CS3203"


def test_add_students_skips_conflicting_identifier(client, database, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)
    make_person(database, "T001", "Tim", "tim@example.edu", Role.TA)

    response = client.post(f"/api/courses/{course_id}/students", json={"items": [
        student_record("T001", "Tim", email="tim@example.edu"),
        student_record("S001", "Alice"),
    ]})

    assert response.status_code == 200
    assert response.json()["message"] == "Students added to the course successfully"
    people = client.get(f"/api/courses/{course_id}/people").json()
    assert [student["identifier"] for student in people["students"]] == ["S001"]


def test_remove_unknown_student(client, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)

    response = client.delete(f"/api/courses/{course_id}/students/nobody")
    assert response.status_code == 404
    assert response.json() == {"error": "Student not found"}


def test_update_and_delete_course(client, database, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)

    response = client.put(f"/api/courses/{course_id}", json={"name": "Renamed"})
    assert response.json() == {"message": "Course updated successfully"}
    assert CourseRepository(database).find_by_id(course_id).name == "Renamed"

    response = client.delete(f"/api/courses/{course_id}")
    assert response.json() == {"message": "Course deleted successfully"}
    assert client.delete(f"/api/courses/{course_id}").status_code == 404


def test_team_set_and_team_routes(client, database, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)
    client.post(f"/api/courses/{course_id}/students", json={"items": [student_record("S001", "Alice")]})

    response = client.post(f"/api/courses/{course_id}/teamsets", json={"name": "Project"})
    assert response.status_code == 201
    duplicate = client.post(f"/api/courses/{course_id}/teamsets", json={"name": "Project"})
    assert duplicate.status_code == 400

    response = client.post(f"/api/courses/{course_id}/teams/students", json={"items": [
        {"identifier": "S001", "teamSet": "Project", "teamNumber": 1},
    ]})
    assert response.json() == {"message": "Students added to teams successfully"}
    assert client.get(f"/api/courses/{course_id}/teamsetnames").json() == ["Project"]

    team_sets = client.get(f"/api/courses/{course_id}/teamsets").json()
    team = team_sets[0]["teams"][0]
    assert team["members"][0]["name"] == "Alice"

    alice = UserRepository(database).find_by_identifier("S001")
    response = client.delete(f"/api/teams/{team['_id']}/members/{alice.id}")
    assert response.status_code == 200
    assert TeamRepository(database).find_by_id(team["_id"]).members == []

    response = client.delete(f"/api/teamsets/{team_sets[0]['_id']}")
    assert response.status_code == 200
    assert client.get(f"/api/courses/{course_id}/teamsets").json() == []


def test_sprint_with_end_before_start_is_rejected(client, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)

    response = client.post(f"/api/courses/{course_id}/sprints", json={
        "number": 1, "startDate": "2024-09-15T00:00:00Z", "endDate": "2024-09-01T00:00:00Z",
    })
    assert response.status_code == 400

    response = client.post(f"/api/courses/{course_id}/milestones", json={
        "number": 1, "dateline": "2024-09-20T00:00:00Z", "description": "Proposal",
    })
    assert response.status_code == 201
    assert response.json() == {"message": "Milestone added successfully"}


def test_assessment_routes(client, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)
    client.post(f"/api/courses/{course_id}/students", json={"items": [student_record("S001", "Alice")]})

    response = client.post(f"/api/courses/{course_id}/assessments", json={"items": [
        {"assessmentType": "Quiz", "markType": "Score", "granularity": "individual"},
    ]})
    assert response.status_code == 201

    [assessment] = client.get(f"/api/courses/{course_id}/assessments").json()
    response = client.post(f"/api/assessments/{assessment['_id']}/results", json={"items": [
        {"studentId": "S001", "mark": 7},
    ]})
    assert response.json() == {"message": "Results uploaded successfully"}

    detail = client.get(f"/api/assessments/{assessment['_id']}").json()
    assert detail["results"][0]["marks"][0]["mark"] == 7

    response = client.post(f"/api/courses/{course_id}/assessments", json={"items": [
        {"assessmentType": "Quiz", "markType": "Score", "granularity": "individual"},
    ]})
    assert response.status_code == 400
    assert response.json() == {"error": "Assessment Quiz already exists"}


def test_project_management_route(client, database, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)
    client.post(f"/api/courses/{course_id}/students", json={"items": [student_record("S001", "Alice")]})
    client.post(f"/api/courses/{course_id}/teamsets", json={"name": "Project"})
    client.post(f"/api/courses/{course_id}/teams/students", json={"items": [
        {"identifier": "S001", "teamSet": "Project", "teamNumber": 1},
    ]})
    team_id = client.get(f"/api/courses/{course_id}/teamsets").json()[0]["teams"][0]["_id"]

    response = client.put(f"/api/teams/{team_id}/jira", json={
        "jiraLocation": {"projectName": "ALPHA"},
        "columns": [{"name": "To Do"}],
        "jiraSprints": [{"name": "Sprint 1", "state": "active", "jiraIssues": [
            {"storyPoints": 3, "fields": {"status": {"name": "To Do"}, "assignee": {"displayName": "Alice"}}},
        ]}],
    })
    assert response.status_code == 200

    summary = client.get(f"/api/teams/{team_id}/project-management", params={"hoursPerStoryPoint": 2}).json()
    assert summary["jiraProject"] == "ALPHA"
    assert summary["currentSprint"] == "Sprint 1"
    assert summary["activeSprintBoard"]["columns"][0]["issues"][0]["storyPoints"] == 3
    assert [row["assignee"] for row in summary["assigneeStats"][0]["rows"]] == ["Alice", "Total"]

    invalid = client.get(f"/api/teams/{team_id}/project-management", params={"hoursPerStoryPoint": 0})
    assert invalid.status_code == 400


def test_account_registration_and_approval(client):
    response = client.post("/api/accounts", json={
        "identifier": "F002", "name": "Barbara Liskov", "email": "barbara@example.edu", "role": "Faculty member",
    })
    assert response.status_code == 201
    account_id = response.json()["_id"]

    duplicate = client.post("/api/accounts", json={
        "identifier": "F003", "name": "Other", "email": "barbara@example.edu", "role": "Faculty member",
    })
    assert duplicate.status_code == 400

    pending = client.get("/api/accounts/pending").json()
    assert [account["_id"] for account in pending] == [account_id]

    response = client.patch("/api/accounts/approve", json={"ids": [account_id]})
    assert response.status_code == 200
    assert client.get("/api/accounts/pending").json() == []

    assert client.patch("/api/accounts/approve", json={"ids": ["missing"]}).status_code == 404


def test_missing_authorization_is_checked_before_the_body(client):
    response = client.post("/api/courses", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing authorization"}

    response = client.post("/api/courses", json={"name": "SE"})
    assert response.json() == {"error": "Missing authorization"}


def test_sprint_dates_with_and_without_zone_are_compared_as_utc(client, database, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)

    response = client.post(f"/api/courses/{course_id}/sprints", json={
        "number": 1, "startDate": "2024-09-01T00:00:00Z", "endDate": "2024-09-14T00:00:00",
    })
    assert response.status_code == 201

    response = client.post(f"/api/courses/{course_id}/sprints", json={
        "number": 2, "startDate": "2024-09-15T00:00:00Z", "endDate": "2024-09-01T00:00:00",
    })
    assert response.status_code == 400
    assert len(CourseRepository(database).find_by_id(course_id).sprints) == 1


def test_jira_board_with_unparseable_sprint_date_is_rejected(client, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)
    client.post(f"/api/courses/{course_id}/students", json={"items": [student_record("S001", "Alice")]})
    client.post(f"/api/courses/{course_id}/teamsets", json={"name": "Project"})
    client.post(f"/api/courses/{course_id}/teams/students", json={"items": [
        {"identifier": "S001", "teamSet": "Project", "teamNumber": 1},
    ]})
    team_id = client.get(f"/api/courses/{course_id}/teamsets").json()[0]["teams"][0]["_id"]

    response = client.put(f"/api/teams/{team_id}/jira", json={
        "jiraLocation": {"projectName": "ALPHA"},
        "jiraSprints": [{"name": "Sprint 1", "state": "closed", "endDate": "next friday"}],
    })
    assert response.status_code == 400

    response = client.put(f"/api/teams/{team_id}/jira", json={
        "jiraLocation": {"projectName": "ALPHA"},
        "jiraSprints": [{"name": "Sprint 1", "state": "closed", "endDate": "2024-09-15T00:00:00"}],
    })
    assert response.status_code == 200

    summary = client.get(f"/api/teams/{team_id}/project-management")
    assert summary.status_code == 200
    assert summary.json()["velocity"]["sprints"][0]["endDate"] == "2024-09-15T00:00:00+00:00"


def test_cascading_course_delete_removes_jira_boards(client, database, faculty):
    account, _ = faculty
    course_id = _create_course(client, account)
    client.post(f"/api/courses/{course_id}/students", json={"items": [student_record("S001", "Alice")]})
    client.post(f"/api/courses/{course_id}/teamsets", json={"name": "Project"})
    client.post(f"/api/courses/{course_id}/teams/students", json={"items": [
        {"identifier": "S001", "teamSet": "Project", "teamNumber": 1},
    ]})
    team_id = client.get(f"/api/courses/{course_id}/teamsets").json()[0]["teams"][0]["_id"]
    client.put(f"/api/teams/{team_id}/jira", json={"jiraLocation": {"projectName": "ALPHA"}})

    assert client.delete(f"/api/courses/{course_id}").status_code == 200
    assert JiraBoardRepository(database).count() == 0
