"""Sample project tree for trying out safeclean safely."""

from __future__ import annotations

import logging
from pathlib import Path

log = logging.getLogger(__name__)

_KB = 1024
_MB = 1024 * _KB

# project dir -> (marker files, {artifact file path: size})
_PROJECTS: dict[str, tuple[tuple[str, ...], dict[str, int]]] = {
    "rust-cli": (("Cargo.toml",), {
        "target/debug/rust-cli": 12 * _MB,
        "target/debug/deps/libserde.rlib": 6 * _MB,
        "target/release/rust-cli": 4 * _MB,
    }),
    "web-app": (("package.json",), {
        "node_modules/react/index.js": 300 * _KB,
        "node_modules/lodash/lodash.js": 540 * _KB,
        "node_modules/.bin/tsc": 2 * _KB,
    }),
    "py-tool": (("pyproject.toml",), {
        ".venv/lib/python3.12/site-packages/requests/api.py": 90 * _KB,
        ".pytest_cache/v/cache/nodeids": 3 * _KB,
        "py_tool/__pycache__/main.cpython-312.pyc": 12 * _KB,
    }),
    "java-service": (("pom.xml",), {
        "target/classes/App.class": 40 * _KB,
        "target/java-service-1.0.jar": 2 * _MB,
    }),
    "gradle-lib": (("build.gradle.kts",), {
        "build/libs/gradle-lib.jar": 1 * _MB,
        ".gradle/8.5/fileHashes/fileHashes.bin": 200 * _KB,
    }),
    "dotnet-api": (("Api.csproj",), {
        "bin/Debug/net8.0/Api.dll": 800 * _KB,
        "obj/project.assets.json": 150 * _KB,
    }),
    "next-site": (("package.json", "next.config.mjs"), {
        ".next/cache/webpack/client.pack": 3 * _MB,
        "node_modules/next/dist/server.js": 5 * _MB,
    }),
    "nuxt-site": (("package.json", "nuxt.config.ts"), {
        ".nuxt/dist/server.mjs": 700 * _KB,
    }),
    # Decoys: registered names without the project marker next to them.
    "scripts": ((), {
        "bin/deploy.sh": 4 * _KB,
        "target/notes.txt": 1 * _KB,
    }),
}


def _write_sparse(path: Path, size: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)


def generate_demo(root: Path) -> list[Path]:
    """Create sample projects under *root*.

    Every category gets one project with its marker file and artifact
    directory; artifact files are sparse so they cost almost no disk.

    Returns:
        The artifact directories a full scan should report, sorted.
    """
    root = Path(root)
    root.mkdir(parents=True, exist_ok=True)
    expected: set[Path] = set()

    for project, (markers, files) in _PROJECTS.items():
        project_dir = root / project
        project_dir.mkdir(exist_ok=True)
        for marker in markers:
            (project_dir / marker).touch()
        (project_dir / "README.md").write_text(f"# {project}\n", encoding="utf-8")

        for rel, size in files.items():
            _write_sparse(project_dir / rel, size)
            if markers:
                expected.add(_artifact_dir(project_dir, rel))

    log.info("Generated %d demo projects in %s", len(_PROJECTS), root)
    return sorted(expected)


def _artifact_dir(project_dir: Path, rel: str) -> Path:
    """The disposable directory a demo file lives in."""
    parts = rel.split("/")
    for i, part in enumerate(parts[:-1]):
        if part == "__pycache__":
            return project_dir.joinpath(*parts[: i + 1])
    return project_dir / parts[0]
