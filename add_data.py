"""
Script to add sample data to the multigit backend via the REST API.
Make sure the server is running before executing this script.

Usage:
    python add_data.py
"""

import os
import sys

import requests


def _console_supports_utf8() -> bool:
    enc = getattr(sys.stdout, "encoding", None)
    return enc is not None and "utf" in enc.lower()


_OK_CHAR = "✓" if _console_supports_utf8() else "[OK]"
_FAIL_CHAR = "✗" if _console_supports_utf8() else "[FAIL]"

BASE_URL = os.environ.get("MULTIGIT_BASE_URL", "http://127.0.0.1:8000")


def check_server():
    """Check if the server is running."""
    try:
        response = requests.get(f"{BASE_URL}/health", timeout=2)
        if response.status_code == 200:
            print(f"{_OK_CHAR} Server is running")
            return True
    except requests.exceptions.RequestException:
        pass
    print(f"{_FAIL_CHAR} Server is not running!")
    print("\nPlease start the server first:")
    print("  python -m multigit.main --port 8000")
    return False


def _send(method, path, description, account_id=None, **kwargs):
    headers = {"Authorization": account_id} if account_id else {}
    try:
        response = requests.request(method, f"{BASE_URL}{path}", headers=headers, timeout=10, **kwargs)
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error while trying to {description}: {e}")
        return None
    if response.status_code in (200, 201):
        print(f"{_OK_CHAR} {description}")
        return response.json()
    print(f"{_FAIL_CHAR} Failed to {description}: {response.text}")
    return None


def register_account(identifier, name, email, role):
    return _send("POST", "/api/accounts", f"register {role} {name}", json={
        "identifier": identifier, "name": name, "email": email, "role": role,
    })


def create_course(account_id, name, code, semester):
    return _send("POST", "/api/courses", f"create course {code}", account_id, json={
        "name": name, "code": code, "semester": semester,
    })


def add_people(course_id, kind, people):
    return _send("POST", f"/api/courses/{course_id}/{kind}", f"add {len(people)} {kind}", json={"items": people})


def create_team_set(course_id, name):
    return _send("POST", f"/api/courses/{course_id}/teamsets", f"create team set {name}", json={"name": name})


def assign_teams(course_id, kind, records):
    return _send("POST", f"/api/courses/{course_id}/teams/{kind}", f"assign {kind} to teams", json={"items": records})


def add_sprint(course_id, number, start_date, end_date):
    return _send("POST", f"/api/courses/{course_id}/sprints", f"add sprint {number}", json={
        "number": number, "startDate": start_date, "endDate": end_date, "description": f"Sprint {number}",
    })


def add_milestone(course_id, number, dateline, description):
    return _send("POST", f"/api/courses/{course_id}/milestones", f"add milestone {number}", json={
        "number": number, "dateline": dateline, "description": description,
    })


def add_assessments(course_id, assessments):
    return _send("POST", f"/api/courses/{course_id}/assessments", f"add {len(assessments)} assessments",
                 json={"items": assessments})


def show_course(course_id, account_id):
    course = _send("GET", f"/api/courses/{course_id}", "fetch course", account_id)
    if not course:
        return None
    print(f"\n{'='*60}")
    print(f"{course['code']} - {course['name']} ({course['semester']})")
    print(f"{'='*60}")
    for role in ("faculty", "TAs", "students"):
        names = ", ".join(person['name'] for person in course[role]) or "None"
        print(f"  {role:10} | {names}")
    for team_set in course['teamSets']:
        for team in team_set['teams']:
            members = ", ".join(member['name'] for member in team['members'])
            ta = team['TA']['name'] if team['TA'] else "-"
            print(f"  {team_set['name']} team {team['number']} | TA {ta} | {members}")
    return course


def main():
    """Main execution."""
    print("="*60)
    print("Multi-Git Dashboard - Data Addition Script")
    print("="*60)
    print()

    if not check_server():
        sys.exit(1)

    faculty = register_account("F001", "Grace Hopper", "grace@university.edu", "Faculty member")
    if not faculty:
        sys.exit(1)

    course = create_course(faculty["_id"], "Software Engineering Project", "CS3203", "AY2024/25 S1")
    if not course:
        sys.exit(1)
    course_id = course["_id"]

    add_people(course_id, "tas", [
        {"identifier": "T001", "name": "Alan Turing", "email": "alan@university.edu"},
    ])
    add_people(course_id, "students", [
        {"identifier": "S001", "name": "Alice Johnson", "email": "alice@university.edu", "gitHandle": "alicej"},
        {"identifier": "S002", "name": "Bob Smith", "email": "bob@university.edu", "gitHandle": "bobsmith"},
        {"identifier": "S003", "name": "Carol Davis", "email": "carol@university.edu"},
        {"identifier": "S004", "name": "David Wilson", "email": "david@university.edu"},
    ])

    create_team_set(course_id, "Project")
    assign_teams(course_id, "students", [
        {"identifier": "S001", "teamSet": "Project", "teamNumber": 1},
        {"identifier": "S002", "teamSet": "Project", "teamNumber": 1},
        {"identifier": "S003", "teamSet": "Project", "teamNumber": 2},
        {"identifier": "S004", "teamSet": "Project", "teamNumber": 2},
    ])
    assign_teams(course_id, "tas", [
        {"identifier": "T001", "teamSet": "Project", "teamNumber": 1},
        {"identifier": "T001", "teamSet": "Project", "teamNumber": 2},
    ])

    add_milestone(course_id, 1, "2024-09-20T23:59:00Z", "Project proposal")
    add_sprint(course_id, 1, "2024-09-02T00:00:00Z", "2024-09-15T23:59:00Z")
    add_sprint(course_id, 2, "2024-09-16T00:00:00Z", "2024-09-29T23:59:00Z")

    add_assessments(course_id, [
        {"assessmentType": "Peer review", "markType": "Percentage", "frequency": "Weekly",
         "granularity": "individual", "teamSetName": "Project"},
        {"assessmentType": "Demo", "markType": "Grade", "frequency": "Once",
         "granularity": "team", "teamSetName": "Project"},
    ])

    show_course(course_id, faculty["_id"])

    print("\n" + "="*60)
    print(f"{_OK_CHAR} Sample data added successfully!")
    print("="*60)
    print(f"\nView API docs: {BASE_URL}/docs")
    print(f"Faculty account id (use as Authorization header): {faculty['_id']}")
    print()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print(f"\n\n{_FAIL_CHAR} Interrupted by user")
        sys.exit(1)
