import pytest


@pytest.fixture
def goal_scenario():
    """One goal over two projects; the first project holds a task and a note."""
    return {
        "projects": [
            {"id": "P1", "title": "Launch website", "status": "active", "tasks": ["T1"], "notes": ["N1"]},
            {"id": "P2", "title": "Plan offsite", "status": "planning"},
        ],
        "tasks": [{"id": "T1", "title": "Write copy", "status": "todo"}],
        "notes": [{"id": "N1", "title": "Brand ideas", "type": "idea"}],
        "people": [],
        "goals": [{"id": "G", "title": "Grow the business", "status": "active", "projects": ["P1", "P2"]}],
        "habits": [],
    }


@pytest.fixture
def workspace():
    """A small but fully cross-linked data set, shaped like the REST backend's documents."""
    return {
        "projects": [
            {
                "_id": "proj-site",
                "title": "Website Project",
                "status": "in-progress",
                "tasks": ["task-copy", "task-deploy"],
                "notes": ["note-brief"],
                "people": ["person-ana"],
            },
            {"_id": "proj-books", "title": "Bookkeeping", "status": "someday", "tasks": [], "notes": []},
        ],
        "tasks": [
            {"_id": "task-copy", "title": "Draft landing copy", "status": "todo", "notes": ["note-brief"], "project": "proj-site"},
            {"_id": "task-deploy", "title": "Deploy site", "status": "done", "project": "proj-site"},
            {"_id": "task-taxes", "title": "File taxes", "status": "todo", "project": "ghost"},
        ],
        "notes": [
            {
                "_id": "note-brief",
                "title": "Project brief",
                "type": "reference",
                "tasks": ["task-copy"],
                "project": "proj-site",
                "people": ["person-ana"],
            },
        ],
        "people": [
            {
                "_id": "person-ana",
                "firstName": "Ana",
                "lastName": "Lopez",
                "relationship": "colleague",
                "projects": ["proj-site"],
                "tasks": [],
                "notes": ["note-brief"],
            },
        ],
        "goals": [
            {"_id": "goal-grow", "title": "Grow audience", "status": "active", "projects": ["proj-site"], "habits": ["habit-write"]},
        ],
        "habits": [
            {"_id": "habit-write", "title": "Write daily", "isActive": True, "goal": "goal-grow"},
            {"_id": "habit-run", "title": "Morning run", "isActive": False},
        ],
    }
