"""Project introspection.

Looks at a project directory and reports the facts the rest of the
package needs: framework, source layout, TypeScript / RSC usage, the
Tailwind CSS version plus its config and stylesheet, the import alias
prefix and the package manager.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import json5
from pydantic import BaseModel, Field

IGNORED_DIRECTORIES = frozenset(
    {"node_modules", ".git", ".next", "dist", "build", "public", ".turbo", "coverage", "out"}
)
MAX_CSS_SCAN_DEPTH = 5

_TAILWIND_V3_RE = re.compile(r"^(?:\^|~)?3(?:\.\d+)*(?:-.*)?$")
_REACT_19_RE = re.compile(r"^(?:\^|~)?19(?:\.\d+)*(?:-.*)?$")
_TAILWIND_CONFIG_NAMES = (
    "tailwind.config.js",
    "tailwind.config.cjs",
    "tailwind.config.mjs",
    "tailwind.config.ts",
    "tailwind.config.mts",
    "tailwind.config.cts",
)
_TAILWIND_V3_DIRECTIVE = re.compile(r"@tailwind\s+base")
_TAILWIND_V4_DIRECTIVE = re.compile(r"""@import\s+["']tailwindcss["']""")


class Framework(BaseModel):
    name: str
    label: str
    installation: str = ""
    tailwind: str = ""


FRAMEWORKS: dict[str, Framework] = {
    f.name: f
    for f in (
        Framework(
            name="next-app",
            label="Next.js",
            installation="https://ui.shadcn.com/docs/installation/next",
            tailwind="https://tailwindcss.com/docs/guides/nextjs",
        ),
        Framework(
            name="next-pages",
            label="Next.js",
            installation="https://ui.shadcn.com/docs/installation/next",
            tailwind="https://tailwindcss.com/docs/guides/nextjs",
        ),
        Framework(
            name="remix",
            label="Remix",
            installation="https://ui.shadcn.com/docs/installation/remix",
            tailwind="https://tailwindcss.com/docs/installation/using-postcss",
        ),
        Framework(
            name="react-router",
            label="React Router",
            installation="https://ui.shadcn.com/docs/installation/react-router",
            tailwind="https://tailwindcss.com/docs/installation/framework-guides/react-router",
        ),
        Framework(
            name="vite",
            label="Vite",
            installation="https://ui.shadcn.com/docs/installation/vite",
            tailwind="https://tailwindcss.com/docs/guides/vite",
        ),
        Framework(
            name="astro",
            label="Astro",
            installation="https://ui.shadcn.com/docs/installation/astro",
            tailwind="https://tailwindcss.com/docs/guides/astro",
        ),
        Framework(
            name="laravel",
            label="Laravel",
            installation="https://ui.shadcn.com/docs/installation/laravel",
            tailwind="https://tailwindcss.com/docs/guides/laravel",
        ),
        Framework(
            name="tanstack-start",
            label="TanStack Start",
            installation="https://ui.shadcn.com/docs/installation/tanstack",
            tailwind="https://tailwindcss.com/docs/installation/using-postcss",
        ),
        Framework(
            name="gatsby",
            label="Gatsby",
            installation="https://ui.shadcn.com/docs/installation/gatsby",
            tailwind="https://tailwindcss.com/docs/guides/gatsby",
        ),
        Framework(
            name="expo",
            label="Expo",
            installation="https://ui.shadcn.com/docs/installation/expo",
            tailwind="https://www.nativewind.dev/docs/getting-started/installation",
        ),
        Framework(
            name="manual",
            label="Manual",
            installation="https://ui.shadcn.com/docs/installation/manual",
            tailwind="https://tailwindcss.com/docs/installation",
        ),
    )
}


class ProjectInfo(BaseModel):
    """Facts about a project directory, all paths relative to ``cwd``."""

    cwd: Path
    framework: Framework = Field(default_factory=lambda: FRAMEWORKS["manual"])
    is_src_dir: bool = False
    is_rsc: bool = False
    is_tsx: bool = False
    tailwind_config_file: str | None = None
    tailwind_css_file: str | None = None
    tailwind_version: str | None = None
    alias_prefix: str | None = None


# ---------------------------------------------------------------------------
# package.json / tsconfig helpers
# ---------------------------------------------------------------------------


def get_package_info(cwd: str | Path) -> dict[str, Any] | None:
    """Parsed ``package.json`` or ``None`` if absent or unreadable."""
    path = Path(cwd) / "package.json"
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError):
        return None
    return data if isinstance(data, dict) else None


def _all_dependencies(package_info: dict[str, Any] | None) -> dict[str, str]:
    if not package_info:
        return {}
    return {**package_info.get("devDependencies", {}), **package_info.get("dependencies", {})}


def load_ts_config(cwd: str | Path) -> dict[str, Any] | None:
    """``tsconfig.json`` (or ``jsconfig.json``) parsed as JSON5 to tolerate comments."""
    for name in ("tsconfig.json", "jsconfig.json"):
        path = Path(cwd) / name
        if not path.is_file():
            continue
        try:
            data = json5.loads(path.read_text(encoding="utf-8"))
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
    return None


def get_ts_config_paths(cwd: str | Path) -> dict[str, list[str]]:
    config = load_ts_config(cwd) or {}
    paths = config.get("compilerOptions", {}).get("paths", {})
    if not isinstance(paths, dict):
        return {}
    return {key: list(value) for key, value in paths.items() if isinstance(value, list)}


def get_alias_prefix(cwd: str | Path) -> str | None:
    """The import alias that points at the project root or ``src``, e.g. ``@``."""
    paths = get_ts_config_paths(cwd)
    if not paths:
        return None
    for alias, targets in paths.items():
        if not alias.endswith("/*"):
            continue
        if any(t in ("./*", "./src/*", "./app/*", "./resources/js/*") for t in targets):
            return alias[:-2]
    first = next(iter(paths))
    return first[:-2] if first.endswith("/*") else first


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def _exists_any(cwd: Path, stems: tuple[str, ...], extensions: tuple[str, ...]) -> bool:
    return any((cwd / f"{stem}.{ext}").exists() for stem in stems for ext in extensions)


def detect_framework(cwd: Path, package_info: dict[str, Any] | None, is_src_dir: bool) -> Framework:
    deps = _all_dependencies(package_info)
    config_exts = ("js", "mjs", "cjs", "ts", "mts")

    if _exists_any(cwd, ("next.config",), config_exts):
        app_dir = cwd / "src" / "app" if is_src_dir else cwd / "app"
        return FRAMEWORKS["next-app" if app_dir.is_dir() else "next-pages"]
    if _exists_any(cwd, ("astro.config",), config_exts):
        return FRAMEWORKS["astro"]
    if _exists_any(cwd, ("gatsby-config",), config_exts):
        return FRAMEWORKS["gatsby"]
    if (cwd / "composer.json").exists():
        return FRAMEWORKS["laravel"]
    if any(name.startswith("@remix-run/") for name in deps):
        return FRAMEWORKS["remix"]
    if "@tanstack/react-start" in deps or "@tanstack/start" in deps:
        return FRAMEWORKS["tanstack-start"]
    if _exists_any(cwd, ("react-router.config",), config_exts):
        return FRAMEWORKS["react-router"]
    if _exists_any(cwd, ("vite.config",), config_exts):
        return FRAMEWORKS["vite"]
    if "expo" in deps:
        return FRAMEWORKS["expo"]
    return FRAMEWORKS["manual"]


def get_tailwind_version(cwd: str | Path, package_info: dict[str, Any] | None = None) -> str | None:
    """``"v3"``, ``"v4"`` or ``None`` when Tailwind CSS is not a dependency."""
    package_info = package_info if package_info is not None else get_package_info(cwd)
    spec = _all_dependencies(package_info).get("tailwindcss")
    if not spec:
        return None
    return "v3" if _TAILWIND_V3_RE.match(spec) else "v4"


def get_tailwind_config_file(cwd: str | Path) -> str | None:
    for name in _TAILWIND_CONFIG_NAMES:
        if (Path(cwd) / name).is_file():
            return name
    return None


def _iter_css_files(root: Path, depth: int = 0):
    if depth > MAX_CSS_SCAN_DEPTH:
        return
    try:
        entries = sorted(root.iterdir())
    except OSError:
        return
    for entry in entries:
        if entry.is_dir():
            if entry.name not in IGNORED_DIRECTORIES and not entry.name.startswith("."):
                yield from _iter_css_files(entry, depth + 1)
        elif entry.suffix == ".css":
            yield entry


def get_tailwind_css_file(cwd: str | Path, tailwind_version: str | None) -> str | None:
    """First stylesheet that pulls Tailwind in, relative to *cwd*."""
    root = Path(cwd)
    directive = _TAILWIND_V4_DIRECTIVE if tailwind_version == "v4" else _TAILWIND_V3_DIRECTIVE
    for css_file in _iter_css_files(root):
        try:
            text = css_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        if directive.search(text):
            return css_file.relative_to(root).as_posix()
    return None


def is_react_19_with_day_picker_8(cwd: str | Path) -> bool:
    """React 19 together with ``react-day-picker`` 8 needs a forced install."""
    deps = (get_package_info(cwd) or {}).get("dependencies", {})
    react = deps.get("react")
    if not react or not _REACT_19_RE.match(react):
        return False
    return str(deps.get("react-day-picker", "")).lstrip("^~").startswith("8")


def get_package_manager(cwd: str | Path) -> str:
    """Detect the package manager from ``packageManager`` or lockfiles; npm by default."""
    root = Path(cwd)
    declared = (get_package_info(root) or {}).get("packageManager")
    if isinstance(declared, str) and declared:
        name = declared.split("@", 1)[0]
        if name in ("npm", "pnpm", "yarn", "bun", "deno"):
            return name

    lockfiles = (
        ("bun.lockb", "bun"),
        ("bun.lock", "bun"),
        ("pnpm-lock.yaml", "pnpm"),
        ("yarn.lock", "yarn"),
        ("deno.lock", "deno"),
        ("package-lock.json", "npm"),
    )
    for lockfile, manager in lockfiles:
        if (root / lockfile).exists():
            return manager
    return "npm"


def get_project_info(cwd: str | Path) -> ProjectInfo | None:
    """Inspect *cwd*; ``None`` when there is no ``package.json``."""
    root = Path(cwd)
    package_info = get_package_info(root)
    if package_info is None:
        return None

    is_src_dir = (root / "src").is_dir()
    framework = detect_framework(root, package_info, is_src_dir)
    tailwind_version = get_tailwind_version(root, package_info)

    return ProjectInfo(
        cwd=root,
        framework=framework,
        is_src_dir=is_src_dir,
        is_rsc=framework.name == "next-app",
        is_tsx=(root / "tsconfig.json").is_file(),
        tailwind_config_file=get_tailwind_config_file(root),
        tailwind_css_file=get_tailwind_css_file(root, tailwind_version),
        tailwind_version=tailwind_version,
        alias_prefix=get_alias_prefix(root),
    )
