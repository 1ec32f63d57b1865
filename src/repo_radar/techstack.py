"""Language breakdown and best-effort dependency/framework detection."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from pathlib import PurePosixPath

try:
    import tomllib
except ImportError:  # pragma: no cover - fallback for Python < 3.11
    import tomli as tomllib  # type: ignore

from .config import DEFAULT_SETTINGS, Settings
from .github.client import GitHubClient
from .models import Dependency, LanguageShare, TechnologyStack
from .resilience import fallback_chain
from .rounding import round_half_up

logger = logging.getLogger(__name__)

LANGUAGE_COLORS = {
    "JavaScript": "#f1e05a",
    "TypeScript": "#2b7489",
    "Python": "#3572A5",
    "Java": "#b07219",
    "C++": "#f34b7d",
    "C": "#555555",
    "C#": "#239120",
    "PHP": "#4F5D95",
    "Ruby": "#701516",
    "Go": "#00ADD8",
    "Rust": "#dea584",
    "Swift": "#ffac45",
    "Kotlin": "#F18E33",
    "Dart": "#00B4AB",
    "HTML": "#e34c26",
    "CSS": "#1572B6",
    "Shell": "#89e051",
    "Vue": "#2c3e50",
}
DEFAULT_LANGUAGE_COLOR = "#8884d8"

MANIFEST_FILES = ("package.json", "pyproject.toml", "requirements.txt")

FRAMEWORK_KEYWORDS = (
    ("react", "React"),
    ("vue", "Vue.js"),
    ("angular", "Angular"),
    ("express", "Express.js"),
    ("next", "Next.js"),
    ("nuxt", "Nuxt.js"),
    ("svelte", "Svelte"),
    ("django", "Django"),
    ("flask", "Flask"),
    ("fastapi", "FastAPI"),
)
FRAMEWORK_LANGUAGES = frozenset({"Python", "Java"})

_REQUIREMENT_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)\s*(\[[^\]]*\])?\s*(.*)$")


def language_color(language: str) -> str:
    return LANGUAGE_COLORS.get(language, DEFAULT_LANGUAGE_COLOR)


def language_breakdown(byte_counts: dict[str, int]) -> list[LanguageShare]:
    """Per-language share of the code base, largest first."""
    total = sum(byte_counts.values())
    return [
        LanguageShare(
            name=lang,
            bytes=size,
            percentage=round_half_up(size / total * 100) if total else 0,
            color=language_color(lang),
        )
        for lang, size in sorted(byte_counts.items(), key=lambda x: x[1], reverse=True)
    ]


def _parse_requirement(line: str, kind: str) -> Dependency | None:
    requirement = line.split(";", 1)[0].strip()
    match = _REQUIREMENT_RE.match(requirement)
    if not match:
        return None
    return Dependency(name=match.group(1), version=match.group(3).strip() or "*", type=kind)


def _requirements(lines: Iterable[object], kind: str) -> list[Dependency]:
    deps = []
    for line in lines:
        if not isinstance(line, str):
            continue
        dep = _parse_requirement(line, kind)
        if dep is not None:
            deps.append(dep)
    return deps


def _parse_package_json(text: str) -> list[Dependency]:
    content = json.loads(text)
    if not isinstance(content, dict):
        raise ValueError("package.json is not an object")
    deps: list[Dependency] = []
    for key, kind in (("dependencies", "dependency"), ("devDependencies", "devDependency")):
        for dep_name, version in (content.get(key) or {}).items():
            deps.append(Dependency(name=dep_name, version=str(version), type=kind))
    return deps


def _parse_pyproject(text: str) -> list[Dependency]:
    content = tomllib.loads(text)
    project = content.get("project") or {}
    deps = _requirements(project.get("dependencies") or [], "dependency")
    groups = list((project.get("optional-dependencies") or {}).values())
    groups += list((content.get("dependency-groups") or {}).values())
    for group in groups:
        deps.extend(_requirements(group, "devDependency"))
    return deps


def _parse_requirements_txt(text: str) -> list[Dependency]:
    lines = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if line and not line.startswith("-"):
            lines.append(line)
    return _requirements(lines, "dependency")


_PARSERS = {
    "package.json": _parse_package_json,
    "pyproject.toml": _parse_pyproject,
    "requirements.txt": _parse_requirements_txt,
}


def parse_manifest(path: str, text: str) -> list[Dependency]:
    """Parse a dependency manifest. Raises ValueError for unsupported or invalid files."""
    parser = _PARSERS.get(PurePosixPath(path).name)
    if parser is None:
        raise ValueError(f"Unsupported manifest: {path}")
    return parser(text)


def detect_frameworks(
    languages: Iterable[LanguageShare], dependencies: Iterable[Dependency]
) -> list[str]:
    frameworks: dict[str, None] = {}
    for dep in dependencies:
        lowered = dep.name.lower()
        for keyword, framework in FRAMEWORK_KEYWORDS:
            if keyword in lowered:
                frameworks[framework] = None
    for lang in languages:
        if lang.name in FRAMEWORK_LANGUAGES:
            frameworks[lang.name] = None
    return list(frameworks)


async def get_technology_stack(
    client: GitHubClient,
    owner: str,
    name: str,
    settings: Settings | None = None,
) -> TechnologyStack:
    """Languages, dependencies and frameworks; empty lists when unavailable."""
    settings = settings or DEFAULT_SETTINGS
    try:
        languages = language_breakdown(await client.get_languages(owner, name))
    except Exception as exc:
        logger.warning("Could not fetch technology stack for %s/%s: %s", owner, name, exc)
        return TechnologyStack()

    def manifest_strategy(path: str):
        async def fetch() -> list[Dependency]:
            return parse_manifest(path, await client.get_file_content(owner, name, path))

        return (path, fetch, settings.timeouts.insights_fetch)

    dependencies = await fallback_chain(
        [manifest_strategy(path) for path in MANIFEST_FILES],
        default=[],
        label=f"{owner}/{name} manifest",
        level=logging.DEBUG,
    )
    return TechnologyStack(
        languages=languages,
        dependencies=dependencies[: settings.limits.dependencies],
        frameworks=detect_frameworks(languages, dependencies),
    )
