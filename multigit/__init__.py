"""
Multi-Git Dashboard backend.

Course management for teaching staff: rosters of students, teaching
assistants and faculty, teams and team-sets, milestones, sprints,
assessments and Jira-derived project-management metrics.
"""

__version__ = "1.0.0"
__description__ = "Course management backend for the Multi-Git Dashboard"
