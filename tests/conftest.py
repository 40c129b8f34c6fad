import pytest

from metalog_db.logic.models import Fact


@pytest.fixture
def family_facts() -> list[Fact]:
    return [Fact.of("parent", "a", "b"), Fact.of("parent", "b", "c")]


@pytest.fixture
def canvas() -> dict:
    return {
        "nodes": [
            {"id": "n1", "type": "text", "x": 0, "y": 0, "text": "hi", "color": "red"},
            {"id": "n2", "type": "file", "x": 10, "y": 20, "text": "there"},
        ],
        "edges": [
            {"id": "e1", "type": "v:parent", "fromNode": "n1", "toNode": "n2"},
            {"id": "e2", "type": "h:next", "fromNode": "n2", "toNode": "n1", "label": "back"},
        ],
    }
