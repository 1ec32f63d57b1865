"""Tests for the technology stack inspector."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from repo_radar.errors import NotFoundError, UpstreamError
from repo_radar.github.client import GitHubClient
from repo_radar.models import Dependency, LanguageShare
from repo_radar.techstack import (
    DEFAULT_LANGUAGE_COLOR,
    detect_frameworks,
    get_technology_stack,
    language_breakdown,
    language_color,
    parse_manifest,
)

PACKAGE_JSON = json.dumps(
    {
        "name": "demo",
        "dependencies": {"react": "^18.2.0", "next": "14.0.0"},
        "devDependencies": {"typescript": "^5.0.0"},
    }
)

PYPROJECT = """
[project]
name = "demo"
dependencies = [
    "fastapi>=0.110",
    "httpx[http2]>=0.27",
    "tomli>=2.0; python_version < '3.11'",
]

[project.optional-dependencies]
test = ["pytest>=8.0"]
"""

REQUIREMENTS = """
# web
Django==5.0.1
requests
-r base.txt
gunicorn>=21  # server
"""


def test_language_breakdown():
    languages = language_breakdown({"JavaScript": 3000, "Python": 6000, "Cobol": 1000})
    assert [lang.name for lang in languages] == ["Python", "JavaScript", "Cobol"]
    assert [lang.percentage for lang in languages] == [60, 30, 10]
    assert languages[0].color == "#3572A5"
    assert languages[2].color == DEFAULT_LANGUAGE_COLOR


def test_language_breakdown_empty():
    assert language_breakdown({}) == []


def test_language_color():
    assert language_color("Go") == "#00ADD8"
    assert language_color("Brainfuck") == DEFAULT_LANGUAGE_COLOR


def test_parse_package_json():
    deps = parse_manifest("package.json", PACKAGE_JSON)
    assert Dependency("react", "^18.2.0", "dependency") in deps
    assert Dependency("typescript", "^5.0.0", "devDependency") in deps


def test_parse_pyproject():
    deps = parse_manifest("pyproject.toml", PYPROJECT)
    assert deps == [
        Dependency("fastapi", ">=0.110", "dependency"),
        Dependency("httpx", ">=0.27", "dependency"),
        Dependency("tomli", ">=2.0", "dependency"),
        Dependency("pytest", ">=8.0", "devDependency"),
    ]


def test_parse_requirements_txt():
    deps = parse_manifest("requirements.txt", REQUIREMENTS)
    assert deps == [
        Dependency("Django", "==5.0.1", "dependency"),
        Dependency("requests", "*", "dependency"),
        Dependency("gunicorn", ">=21", "dependency"),
    ]


def test_parse_manifest_rejects_unknown_and_invalid():
    with pytest.raises(ValueError):
        parse_manifest("Cargo.toml", "")
    with pytest.raises(ValueError):
        parse_manifest("package.json", "{not json")


def test_detect_frameworks():
    languages = [LanguageShare("Python", 10, 100, "#3572A5")]
    deps = [Dependency("react-dom", "18", "dependency"), Dependency("flask", "3", "dependency")]
    assert detect_frameworks(languages, deps) == ["React", "Flask", "Python"]


def test_detect_frameworks_deduplicates():
    deps = [Dependency("react", "18", "dependency"), Dependency("react-dom", "18", "dependency")]
    assert detect_frameworks([], deps) == ["React"]


@pytest.fixture
def mock_client():
    client = AsyncMock(spec=GitHubClient)
    client.get_languages.return_value = {"TypeScript": 900, "CSS": 100}
    return client


@pytest.mark.asyncio
async def test_get_technology_stack_from_package_json(mock_client):
    mock_client.get_file_content.return_value = PACKAGE_JSON
    stack = await get_technology_stack(mock_client, "vercel", "next.js")

    assert [lang.name for lang in stack.languages] == ["TypeScript", "CSS"]
    assert len(stack.dependencies) == 3
    assert stack.frameworks == ["React", "Next.js"]
    mock_client.get_file_content.assert_awaited_once_with("vercel", "next.js", "package.json")


@pytest.mark.asyncio
async def test_manifest_fallback_to_pyproject(mock_client):
    async def file_content(owner, name, path):
        if path == "pyproject.toml":
            return PYPROJECT
        raise NotFoundError()

    mock_client.get_file_content.side_effect = file_content
    stack = await get_technology_stack(mock_client, "tiangolo", "fastapi")
    assert stack.dependencies[0].name == "fastapi"
    assert "FastAPI" in stack.frameworks


@pytest.mark.asyncio
async def test_no_manifest_leaves_dependencies_empty(mock_client):
    mock_client.get_file_content.side_effect = NotFoundError()
    stack = await get_technology_stack(mock_client, "octocat", "Hello-World")
    assert stack.dependencies == []
    assert stack.frameworks == []
    assert stack.languages


@pytest.mark.asyncio
async def test_dependencies_truncated_but_frameworks_use_all(mock_client):
    manifest = {"dependencies": {f"lib{i:02d}": "1.0" for i in range(25)}}
    manifest["dependencies"]["vue"] = "3.0"
    mock_client.get_file_content.return_value = json.dumps(manifest)

    stack = await get_technology_stack(mock_client, "o", "r")
    assert len(stack.dependencies) == 20
    assert "Vue.js" in stack.frameworks


@pytest.mark.asyncio
async def test_language_failure_gives_empty_stack(mock_client):
    mock_client.get_languages.side_effect = UpstreamError("boom")
    stack = await get_technology_stack(mock_client, "o", "r")
    assert stack.languages == []
    assert stack.dependencies == []
    mock_client.get_file_content.assert_not_called()


def test_language_breakdown_rounds_half_up():
    languages = language_breakdown({"Go": 7, "C": 1})
    assert [lang.percentage for lang in languages] == [88, 13]
