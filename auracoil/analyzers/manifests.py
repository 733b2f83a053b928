"""Parsers for ecosystem manifest files."""

from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..models import ManifestInfo

ManifestParser = Callable[[Path, str], ManifestInfo]

_REQUIREMENT_SPLIT = re.compile(r"[<>=!~;\[\s]")
_GEM_PATTERN = re.compile(r"""^\s*gem\s+['"]([^'"]+)['"]""")
_GO_MODULE_PATTERN = re.compile(r"^module\s+(\S+)", re.MULTILINE)
_GO_REQUIRE_BLOCK = re.compile(r"^require\s*\((.*?)^\)", re.MULTILINE | re.DOTALL)
_GO_REQUIRE_LINE = re.compile(r"^require[ \t]+([^\s(]\S*)[ \t]+\S+", re.MULTILINE)
_SETUP_REQUIRES = re.compile(r"install_requires\s*=\s*\[(.*?)\]", re.DOTALL)
_QUOTED = re.compile(r"""['"]([^'"]+)['"]""")


class ManifestParseError(ValueError):
    """Raised when a manifest whose dependencies are mandatory is unreadable."""


def parse_npm_manifest(path: Path, rel_path: str) -> ManifestInfo:
    """Parse package.json; invalid JSON raises so the manifest is skipped."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ManifestParseError(f"Invalid package.json at {rel_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestParseError(f"package.json at {rel_path} is not an object")

    def _extract(key: str) -> List[str]:
        deps = data.get(key, {})
        if isinstance(deps, dict):
            return [str(name) for name in deps.keys()]
        return []

    name = data.get("name")
    return ManifestInfo(
        type="npm",
        path=rel_path,
        name=name if isinstance(name, str) else None,
        dependencies=tuple(_extract("dependencies") + _extract("devDependencies")),
    )


def parse_python_manifest(path: Path, rel_path: str) -> ManifestInfo:
    """Collect dependency names from requirements.txt, pyproject.toml, or setup.py."""
    filename = path.name
    name: Optional[str] = None
    packages: List[str] = []
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ManifestInfo(type="python", path=rel_path)

    if filename == "requirements.txt":
        packages = _parse_requirements(text)
    elif filename == "pyproject.toml":
        name, packages = _parse_pyproject(text)
    elif filename == "setup.py":
        packages = _parse_setup_py(text)
    return ManifestInfo(type="python", path=rel_path, name=name, dependencies=tuple(packages))


def parse_cargo_manifest(path: Path, rel_path: str) -> ManifestInfo:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
        return ManifestInfo(type="cargo", path=rel_path)

    package = data.get("package")
    name = package.get("name") if isinstance(package, dict) else None
    deps: List[str] = []
    for section in ("dependencies", "dev-dependencies", "build-dependencies"):
        table = data.get(section)
        if isinstance(table, dict):
            deps.extend(str(key) for key in table.keys())
    return ManifestInfo(
        type="cargo",
        path=rel_path,
        name=name if isinstance(name, str) else None,
        dependencies=tuple(_dedupe(deps)),
    )


def parse_go_manifest(path: Path, rel_path: str) -> ManifestInfo:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ManifestInfo(type="go", path=rel_path)

    module = _GO_MODULE_PATTERN.search(text)
    deps: List[str] = [match.group(1) for match in _GO_REQUIRE_LINE.finditer(text)]
    for block in _GO_REQUIRE_BLOCK.finditer(text):
        for line in block.group(1).splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("//"):
                deps.append(stripped.split()[0])
    return ManifestInfo(
        type="go",
        path=rel_path,
        name=module.group(1) if module else None,
        dependencies=tuple(_dedupe(deps)),
    )


def parse_ruby_manifest(path: Path, rel_path: str) -> ManifestInfo:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ManifestInfo(type="ruby", path=rel_path)

    gems: List[str] = []
    for line in text.splitlines():
        match = _GEM_PATTERN.match(line)
        if match:
            gems.append(match.group(1))
    return ManifestInfo(type="ruby", path=rel_path, dependencies=tuple(_dedupe(gems)))


MANIFEST_PARSERS: Dict[str, ManifestParser] = {
    "package.json": parse_npm_manifest,
    "Cargo.toml": parse_cargo_manifest,
    "pyproject.toml": parse_python_manifest,
    "requirements.txt": parse_python_manifest,
    "setup.py": parse_python_manifest,
    "go.mod": parse_go_manifest,
    "Gemfile": parse_ruby_manifest,
}


def _parse_requirements(text: str) -> List[str]:
    packages: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "-")):
            continue
        name = _REQUIREMENT_SPLIT.split(stripped, 1)[0].strip()
        if name:
            packages.append(name)
    return _dedupe(packages)


def _parse_pyproject(text: str) -> Tuple[Optional[str], List[str]]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError:
        return None, []

    dependencies: List[object] = []
    name: Optional[str] = None
    project = data.get("project")
    if isinstance(project, dict):
        raw_name = project.get("name")
        name = raw_name if isinstance(raw_name, str) else None
        required = project.get("dependencies")
        if isinstance(required, list):
            dependencies.extend(required)
        optional = project.get("optional-dependencies")
        if isinstance(optional, dict):
            for values in optional.values():
                if isinstance(values, list):
                    dependencies.extend(values)

    tool = data.get("tool")
    poetry = tool.get("poetry", {}) if isinstance(tool, dict) else {}
    if isinstance(poetry, dict):
        poetry_deps = poetry.get("dependencies", {}) or {}
        if isinstance(poetry_deps, dict):
            dependencies.extend(poetry_deps.keys())
        if name is None and isinstance(poetry.get("name"), str):
            name = poetry["name"]

    packages: Set[str] = set()
    for dep in dependencies:
        if isinstance(dep, str):
            dep_name = _REQUIREMENT_SPLIT.split(dep.strip(), 1)[0].strip()
            if dep_name and dep_name.lower() != "python":
                packages.add(dep_name)
    return name, sorted(packages)


def _parse_setup_py(text: str) -> List[str]:
    match = _SETUP_REQUIRES.search(text)
    if not match:
        return []
    packages = []
    for quoted in _QUOTED.finditer(match.group(1)):
        dep_name = _REQUIREMENT_SPLIT.split(quoted.group(1).strip(), 1)[0].strip()
        if dep_name:
            packages.append(dep_name)
    return _dedupe(packages)


def _dedupe(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


__all__ = [
    "MANIFEST_PARSERS",
    "ManifestParseError",
    "parse_cargo_manifest",
    "parse_go_manifest",
    "parse_npm_manifest",
    "parse_python_manifest",
    "parse_ruby_manifest",
]
