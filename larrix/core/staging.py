# larrix/core/staging.py
from __future__ import annotations
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List

from ..errors import FileSystemError


class ChangeKind(str, Enum):
    CHANGED = "changed"
    DELETED = "deleted"

@dataclass(frozen=True)
class StagedFile:
    path: str   # forward-slash relative path
    size: int


def normalize(rel_path: str) -> str:
    return rel_path.replace("\\", "/").strip("/")

def _inside(root: Path, rel_path: str) -> Path:
    root = Path(root)
    target = root / normalize(rel_path)
    resolved_root = root.resolve()
    resolved = target.resolve()
    if resolved != resolved_root and resolved_root not in resolved.parents:
        raise FileSystemError(f"{rel_path!r} escapes {root}")
    return target


# ---- full rebuild ---------------------------------------------------------
def clean_directory(directory: Path) -> None:
    directory = Path(directory)
    try:
        shutil.rmtree(directory)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise FileSystemError(f"Could not clean {directory}: {e}") from e
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(f"Could not create {directory}: {e}") from e

def rebuild(source_root: Path, staging_root: Path) -> None:
    """Recreate `staging_root` as a byte-for-byte mirror of `source_root`."""
    source_root = Path(source_root)
    if not source_root.is_dir():
        raise FileSystemError(f"Source directory not found: {source_root}")
    clean_directory(staging_root)
    try:
        shutil.copytree(source_root, staging_root, copy_function=shutil.copyfile, dirs_exist_ok=True)
    except (OSError, shutil.Error) as e:
        raise FileSystemError(f"Could not copy {source_root} to {staging_root}: {e}") from e


# ---- enumeration ----------------------------------------------------------
def enumerate_files(root: Path) -> List[StagedFile]:
    """Every regular file under `root`, depth-first, entries sorted by name."""
    root = Path(root)
    files: List[StagedFile] = []

    def walk(directory: Path) -> None:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                walk(Path(entry.path))
            elif entry.is_file():
                rel = Path(entry.path).relative_to(root).as_posix()
                files.append(StagedFile(path=normalize(rel), size=entry.stat().st_size))

    try:
        walk(root)
    except OSError as e:
        raise FileSystemError(f"Could not list {root}: {e}") from e
    return files


# ---- incremental ----------------------------------------------------------
def copy_path(source_root: Path, staging_root: Path, rel_path: str) -> None:
    src = _inside(source_root, rel_path)
    dst = _inside(staging_root, rel_path)
    try:
        if src.is_dir():
            # a directory moved in arrives as one event; stage its contents too
            if dst.exists() and not dst.is_dir():
                dst.unlink()
            shutil.copytree(src, dst, copy_function=shutil.copyfile, dirs_exist_ok=True)
            return
        dst.parent.mkdir(parents=True, exist_ok=True)
        if dst.is_dir():
            shutil.rmtree(dst)
        shutil.copyfile(src, dst)
    except (OSError, shutil.Error) as e:
        raise FileSystemError(f"Could not copy {rel_path}: {e}") from e

def remove_path(staging_root: Path, rel_path: str) -> None:
    dst = _inside(staging_root, rel_path)
    try:
        if dst.is_dir() and not dst.is_symlink():
            shutil.rmtree(dst)
        else:
            dst.unlink()
    except FileNotFoundError:
        pass  # already gone
    except OSError as e:
        raise FileSystemError(f"Could not remove {rel_path}: {e}") from e

def sync_path(source_root: Path, staging_root: Path, rel_path: str) -> ChangeKind:
    """
    Reconcile one path: copy it if it exists under the source root, remove
    the staged counterpart otherwise. Safe to repeat for the same path.
    """
    if _inside(source_root, rel_path).exists():
        copy_path(source_root, staging_root, rel_path)
        return ChangeKind.CHANGED
    remove_path(staging_root, rel_path)
    return ChangeKind.DELETED
