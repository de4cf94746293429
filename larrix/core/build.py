# larrix/core/build.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config import ProjectDescriptor, load_descriptor
from ..console import Console, format_size
from ..settings import Settings, settings as default_settings
from .archive import create_archive
from .manifest import MANIFEST_FILE, write_manifest
from .staging import StagedFile, enumerate_files, rebuild


@dataclass(frozen=True)
class BuildOptions:
    output_directory: str = "dist"
    create_zip: bool = False
    quiet: bool = False

@dataclass
class BuildResult:
    descriptor: ProjectDescriptor
    staging_root: Path
    files: List[StagedFile] = field(default_factory=list)
    manifest_size: int = 0
    archive_path: Optional[Path] = None
    archive_size: Optional[int] = None


def archive_name(descriptor: ProjectDescriptor) -> str:
    return f"{descriptor.name}-{descriptor.version}.zip"

def build_extension(
    project_root: Path,
    options: BuildOptions,
    settings: Settings = default_settings,
    console: Optional[Console] = None,
) -> BuildResult:
    """
    Stage <project>/<source> into <project>/<output>, write manifest.json and,
    for production builds, the <name>-<version>.zip archive next to it.
    """
    console = console or Console(quiet=options.quiet)
    project_root = Path(project_root)
    source_root = project_root / settings.SOURCE_DIR
    staging_root = project_root / options.output_directory
    out = options.output_directory

    console.new_line()
    # config first: an invalid project must not touch the output directory
    descriptor = load_descriptor(project_root, settings.CONFIG_FILE)
    result = BuildResult(descriptor=descriptor, staging_root=staging_root)

    console.step("build", f"Cleaning {out}...")
    console.step("build", "Copying source files...")
    rebuild(source_root, staging_root)

    console.new_line()
    result.files = enumerate_files(staging_root)
    for f in result.files:
        console.file(f"{out}/{f.path}", format_size(f.size))

    console.new_line()
    console.step("build", f"Generating {MANIFEST_FILE}...")
    result.manifest_size = write_manifest(descriptor, source_root, staging_root)
    console.new_line()
    console.file(f"{out}/{MANIFEST_FILE}", format_size(result.manifest_size))

    if options.create_zip:
        console.new_line()
        console.step("build", "Creating zip...")
        name = archive_name(descriptor)
        result.archive_path = project_root / name
        result.archive_size = create_archive(staging_root, result.archive_path)
        console.new_line()
        console.file(name, format_size(result.archive_size))

    console.new_line()
    console.success("Build completed successfully")
    console.new_line()
    return result

def regenerate_manifest(descriptor: ProjectDescriptor, source_root: Path, staging_root: Path) -> int:
    return write_manifest(descriptor, source_root, staging_root)
